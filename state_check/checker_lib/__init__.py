from .core import FAILED, MINOR, PASSED, CheckOutcome, CheckSummary, check_directories, check_files, compare_states
from .exceptions import StateCheckError, StateFileError
from .options import DEFAULT_SKIP_KEYS, SKIP_KEYS_ENV, CheckOptions
