from setuptools import setup, find_packages

setup(
    name="plist_state_project",
    version="1.0.0",
    packages=find_packages(exclude=["benchmarks"]),
    entry_points={
        'console_scripts': [
            'plist-normalize=plist_state.cli:main',
            'state-check=state_check.cli:main',
        ],
    },
    install_requires=[
        "tqdm",
        "colorama",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
