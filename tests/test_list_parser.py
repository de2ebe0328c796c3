import unittest

from tools.xcodebuild import parse_list_output

LIST_OUTPUT = """Information about project "MyApp":
    Targets:
        MyApp
        MyAppTests
        MyApp Widget

    Build Configurations:
        Debug
        Release

    If no build configuration is specified and -scheme is not passed then "Release" is used.

    Schemes:
        MyApp
        MyApp
"""


class TestListParser(unittest.TestCase):
    def test_sections_in_order(self) -> None:
        listing = parse_list_output(LIST_OUTPUT)
        self.assertEqual(("MyApp", "MyAppTests", "MyApp Widget"), listing.targets)
        self.assertEqual(("Debug", "Release"), listing.configurations)

    def test_duplicates_dropped(self) -> None:
        self.assertEqual(("MyApp",), parse_list_output(LIST_OUTPUT).schemes)

    def test_prose_after_blank_line_is_not_a_target(self) -> None:
        listing = parse_list_output(LIST_OUTPUT)
        self.assertFalse(any("build configuration" in t for t in listing.targets + listing.configurations))

    def test_empty_or_garbage_output(self) -> None:
        self.assertEqual((), parse_list_output("").targets)
        self.assertEqual((), parse_list_output("xcodebuild: error: nothing here").targets)


if __name__ == "__main__":
    unittest.main()
