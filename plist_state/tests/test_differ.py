import copy
import math
import unittest

from plist_state.differ import (
    DiagnosticLog, IssueKind, PlistDiffer, diff, format_path, is_rounding_noise,
)
from plist_state.exceptions import UnsupportedValueError


def sample_state():
    return {
        "Export date": "Mon Oct 19 12:00:00 2026",
        "Version": "1.0",
        "CLO": "--run 10 --seed 1",
        "Generation": 10.0,
        "Population": {
            "Strategies": [0, 1, 1, 0],
            "Fitness": [1.0, 0.5, 0.25, 2.0],
            "Name": "Moran",
        },
        "RNG": {"Seed": 1, "State": [1, 2, 3]},
        "Converged": False,
    }


class TestRoundingNoise(unittest.TestCase):

    def test_last_digit_difference_is_noise(self):
        self.assertTrue(is_rounding_noise(1.0, 1.000000000001))
        self.assertTrue(is_rounding_noise(123.456, 123.456 + 1e-12))

    def test_real_difference_is_not_noise(self):
        self.assertFalse(is_rounding_noise(1.0, 1.01))
        self.assertFalse(is_rounding_noise(1.0, 1.0000001))
        self.assertFalse(is_rounding_noise(0.0, 1.0))

    def test_precision_is_configurable(self):
        self.assertTrue(is_rounding_noise(1.0, 1.0001, significant_digits=3))
        self.assertFalse(is_rounding_noise(1.0, 1.0001, significant_digits=6))

    def test_non_finite_values_are_never_noise(self):
        self.assertFalse(is_rounding_noise(math.inf, math.inf))
        self.assertFalse(is_rounding_noise(1.0, math.nan))
        self.assertFalse(is_rounding_noise(math.nan, math.nan))


class TestFormatPath(unittest.TestCase):

    def test_format(self):
        self.assertEqual(format_path(()), "")
        self.assertEqual(format_path(("a", "b", 3)), "a/b[3]")
        self.assertEqual(format_path(("a", 0, 1, "c")), "a[0][1]/c")


class TestDiff(unittest.TestCase):

    def setUp(self):
        self.reference = sample_state()
        self.candidate = sample_state()

    def test_reflexive(self):
        self.assertEqual(diff(self.reference, self.reference), 0)
        self.assertEqual(diff(self.reference, self.candidate), 0)

    def test_nan_equals_itself(self):
        self.assertEqual(diff({"x": math.nan}, {"x": math.nan}), 0)

    def test_signed_zero_differs(self):
        result = PlistDiffer().compare({"x": 0.0}, {"x": -0.0})
        self.assertEqual(result.count, 1)
        self.assertEqual(result.minor, 1)

    def test_changed_leaf(self):
        self.candidate["Population"]["Name"] = "Wright-Fisher"
        result = PlistDiffer().compare(self.reference, self.candidate)
        self.assertEqual(result.count, 1)
        issue = result.issues[0]
        self.assertEqual(issue.kind, IssueKind.VALUE_MISMATCH)
        self.assertEqual(issue.path, ("Population", "Name"))
        self.assertIn("'Population/Name' strings differ", result.messages[0])

    def test_missing_keys_both_ways(self):
        del self.candidate["Converged"]
        self.candidate["Extra"] = 1
        result = PlistDiffer().compare(self.reference, self.candidate)
        self.assertEqual(result.count, 2)
        kinds = {issue.kind for issue in result.issues}
        self.assertEqual(kinds, {IssueKind.MISSING_IN_CANDIDATE, IssueKind.MISSING_IN_REFERENCE})

    def test_type_mismatch(self):
        self.candidate["RNG"]["Seed"] = 1.0
        result = PlistDiffer().compare(self.reference, self.candidate)
        self.assertEqual(result.count, 1)
        self.assertEqual(result.issues[0].kind, IssueKind.TYPE_MISMATCH)
        self.assertIn("value types differ (candidate: real, reference: integer)", result.messages[0])

    def test_boolean_is_not_integer(self):
        self.assertEqual(diff({"x": 1}, {"x": True}), 1)

    def test_size_mismatch_counts_once(self):
        self.candidate["RNG"]["State"].append(4)
        result = PlistDiffer().compare(self.reference, self.candidate)
        self.assertEqual(result.count, 1)
        self.assertEqual(result.issues[0].kind, IssueKind.SIZE_MISMATCH)

    def test_nested_dict_summary_is_not_counted(self):
        self.candidate["RNG"]["Seed"] = 2
        result = PlistDiffer().compare(self.reference, self.candidate)
        self.assertEqual(result.count, 1)
        self.assertEqual(result.messages[-1], "'RNG' dicts differ.")

    def test_every_injected_fault_is_found(self):
        self.candidate["Population"]["Strategies"][2] = 0
        self.candidate["Population"]["Fitness"][0] = 3.0
        self.candidate["Converged"] = True
        self.candidate["RNG"]["State"] = [1, 2]
        self.assertEqual(diff(self.reference, self.candidate), 4)

    def test_diff_is_symmetric_in_count(self):
        self.candidate["Population"]["Fitness"][1] = 0.75
        del self.candidate["RNG"]
        self.assertEqual(diff(self.reference, self.candidate), diff(self.candidate, self.reference))

    def test_skip_keys_apply_at_every_level(self):
        self.candidate["Version"] = "2.0"
        self.candidate["RNG"]["Seed"] = 99
        self.assertEqual(diff(self.reference, self.candidate), 2)
        self.assertEqual(diff(self.reference, self.candidate, skip=["Version"]), 1)
        self.assertEqual(diff(self.reference, self.candidate, skip=["Version", "Seed"]), 0)

    def test_skipped_keys_may_be_missing(self):
        del self.candidate["Export date"]
        self.assertEqual(diff(self.reference, self.candidate, skip=["Export date"]), 0)

    def test_fail_fast(self):
        self.candidate["Population"]["Fitness"] = [9.0, 9.0, 9.0, 9.0]
        self.candidate["Converged"] = True
        self.assertEqual(diff(self.reference, self.candidate), 5)
        self.assertEqual(diff(self.reference, self.candidate, fail_fast=True), 1)

    def test_unsupported_values_raise(self):
        with self.assertRaises(UnsupportedValueError):
            diff({"x": None}, {"x": None})


class TestNumericalClassification(unittest.TestCase):

    def test_rounding_difference_is_minor(self):
        result = PlistDiffer().compare({"x": 1.0}, {"x": 1.000000000001})
        self.assertEqual(result.count, 1)
        self.assertEqual(result.minor, 1)
        self.assertEqual(result.major, 0)
        self.assertTrue(result.issues[0].numerical)
        self.assertEqual(result.messages[-1], "1 out of 1 differences likely numerical rounding issues.")

    def test_large_difference_is_major(self):
        result = PlistDiffer().compare({"x": 1.0}, {"x": 1.01})
        self.assertEqual(result.count, 1)
        self.assertEqual(result.minor, 0)
        self.assertEqual(result.major, 1)
        self.assertFalse(any("rounding" in message for message in result.messages))

    def test_mixed(self):
        result = PlistDiffer().compare({"a": 1.0, "b": 2.0, "c": 3},
                                       {"a": 1.000000000001, "b": 2.5, "c": 4})
        self.assertEqual((result.count, result.minor, result.major), (3, 1, 2))
        self.assertIn("1 out of 3 differences likely numerical rounding issues.", result.messages)

    def test_significant_digits_setting(self):
        self.assertEqual(PlistDiffer(significant_digits=3).compare({"x": 1.0}, {"x": 1.0001}).minor, 1)
        self.assertEqual(PlistDiffer(significant_digits=12).compare({"x": 1.0}, {"x": 1.0001}).minor, 0)


class TestDiagnostics(unittest.TestCase):

    def setUp(self):
        self.reference = {"x": [float(i) for i in range(100)]}
        self.candidate = {"x": [float(i) + 1.0 for i in range(100)]}

    def test_repeats_are_suppressed_but_counted(self):
        result = PlistDiffer().compare(self.reference, self.candidate)
        self.assertEqual(result.count, 100)
        self.assertEqual(len(result.messages), 4)
        self.assertEqual(result.messages[-1], "... suppressed 97 additional similar messages.")

    def test_max_repeats(self):
        result = PlistDiffer(max_repeats=1).compare(self.reference, self.candidate)
        self.assertEqual(result.count, 100)
        self.assertEqual(len(result.messages), 2)

    def test_verbose(self):
        differ = PlistDiffer()
        differ.verbose()
        result = differ.compare(self.reference, self.candidate)
        self.assertEqual(len(result.messages), 100)

    def test_quiet(self):
        differ = PlistDiffer()
        differ.quiet()
        result = differ.compare(self.reference, self.candidate)
        self.assertEqual(result.count, 100)
        self.assertEqual(result.messages, [])

    def test_quiet_logs_nothing(self):
        differ = PlistDiffer()
        differ.quiet()
        with self.assertNoLogs("plist_state.differ", level="WARNING"):
            differ.compare({"a": 1}, {"a": 2})

    def test_messages_are_logged(self):
        with self.assertLogs("plist_state.differ", level="WARNING") as cm:
            PlistDiffer().compare({"a": 1}, {"a": 2})
        self.assertEqual(len(cm.output), 1)
        self.assertIn("'a' integers differ (candidate: 2, reference: 1).", cm.output[0])

    def test_differ_is_reusable(self):
        differ = PlistDiffer()
        first = differ.compare(self.reference, self.candidate)
        second = differ.compare(self.reference, self.candidate)
        self.assertEqual(first.count, second.count)
        self.assertEqual(first.messages, second.messages)

    def test_different_categories_are_not_merged(self):
        log = DiagnosticLog(max_repeats=1)
        log.report("a1", "a")
        log.report("a2", "a")
        log.report("b1", "b")
        log.report("a3", "a")
        log.close()
        self.assertEqual(log.messages, ["a1", "... suppressed 1 additional similar message.", "b1", "a3"])

    def test_uncategorized_messages_always_emitted(self):
        log = DiagnosticLog(max_repeats=1)
        for _ in range(3):
            log.report("same")
        self.assertEqual(log.messages, ["same", "same", "same"])

    def test_array_of_dicts_is_rate_limited(self):
        reference = {"agents": [{"fitness": float(i), "id": i} for i in range(100)]}
        candidate = {"agents": [{"fitness": float(i) + 1.0, "id": i} for i in range(100)]}
        result = PlistDiffer().compare(reference, candidate)
        self.assertEqual(result.count, 100)
        self.assertEqual(len(result.messages), 4)
        self.assertFalse(any("dicts differ" in message for message in result.messages))
        self.assertEqual(result.messages[-1], "... suppressed 97 additional similar messages.")

    def test_matrix_is_rate_limited(self):
        reference = {"m": [[float(10 * i + j) for j in range(10)] for i in range(10)]}
        candidate = {"m": [[float(10 * i + j) + 1.0 for j in range(10)] for i in range(10)]}
        result = PlistDiffer().compare(reference, candidate)
        self.assertEqual(result.count, 100)
        self.assertEqual(len(result.messages), 4)

    def test_array_of_dicts_with_several_keys_is_rate_limited(self):
        reference = {"agents": [{"a": 1, "b": 2} for _ in range(50)]}
        candidate = {"agents": [{"a": 3, "b": 4} for _ in range(50)]}
        result = PlistDiffer(max_repeats=2).compare(reference, candidate)
        self.assertEqual(result.count, 100)
        self.assertLessEqual(len(result.messages), 3)

    def test_dict_summary_kept_inside_dicts(self):
        result = PlistDiffer().compare({"a": {"b": {"c": 1}}}, {"a": {"b": {"c": 2}}})
        self.assertEqual(result.messages[1:], ["'a/b' dicts differ.", "'a' dicts differ."])


class TestOwner(unittest.TestCase):

    def test_owner_tolerates_keys_missing_in_candidate(self):
        state = sample_state()
        subset = {"Generation": 10.0, "RNG": {"Seed": 1, "State": [1, 2, 3]}}
        differ = PlistDiffer(owner=state)
        self.assertEqual(differ.diff(state, subset), 0)

    def test_owner_tolerance_is_top_level_only(self):
        state = sample_state()
        subset = {"RNG": {"Seed": 1}}
        self.assertEqual(PlistDiffer(owner=state).diff(state, subset), 1)

    def test_tolerance_requires_identity(self):
        state = sample_state()
        subset = {"Generation": 10.0}
        self.assertGreater(PlistDiffer(owner=state).diff(copy.deepcopy(state), subset), 0)

    def test_keys_missing_in_owner_still_count(self):
        state = {"a": 1}
        self.assertEqual(PlistDiffer(owner=state).diff(state, {"a": 1, "b": 2}), 1)


if __name__ == '__main__':
    unittest.main()
