import unittest

from pipeline.expansion import ExpansionError, expand, expand_env


class TestLenientExpansion(unittest.TestCase):
    def test_both_spellings(self) -> None:
        env = {"HOME": "/Users/ci", "BUILD": "7"}
        self.assertEqual("/Users/ci/b7", expand_env("${HOME}/b$BUILD", env))

    def test_unknown_left_as_written(self) -> None:
        self.assertEqual("${NOPE}/$ALSO_NOPE", expand_env("${NOPE}/$ALSO_NOPE", {}))

    def test_empty(self) -> None:
        self.assertEqual("", expand_env("", {"A": "1"}))


class TestStrictExpansion(unittest.TestCase):
    def test_known_variables(self) -> None:
        ctx = {"XCODE_BUILD_NUMBER": "2.1 (40)", "BUILD_NUMBER": "12"}
        self.assertEqual("2.1 (40)-12", expand("${XCODE_BUILD_NUMBER}-$BUILD_NUMBER", ctx))

    def test_unknown_variable_raises(self) -> None:
        with self.assertRaises(ExpansionError):
            expand("${MISSING}", {})

    def test_unterminated_reference_raises(self) -> None:
        with self.assertRaises(ExpansionError):
            expand("abc${BUILD", {"BUILD": "1"})

    def test_lone_dollar_is_literal(self) -> None:
        self.assertEqual("cost $ 5", expand("cost $ 5", {}))
        self.assertEqual("end$", expand("end$", {}))

    def test_no_variables(self) -> None:
        self.assertEqual("/tmp/sym", expand("/tmp/sym", {}))


if __name__ == "__main__":
    unittest.main()
