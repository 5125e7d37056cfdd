"""
Binder module tests (positional pass, option scan, consumed count).

Conventions
- Test method names follow CamelCase per project convention.
"""
import dataclasses
import unittest
import warnings
from unittest import TestCase

from argbind import record, positional, option, bind
from argbind.faults import (
    InsufficientArgsError,
    MissingOptionValueError,
    UnknownOptionError,
    MalformedValueError,
    UnsupportedTypeError,
)


@record
class CreateText:
    input: str = positional(0, help="input file")
    output: str = option("--out", "-o", help="output file")
    use_markdown: bool = option("--usemarkdown")


@record
class Tuning:
    count: int | None = option("--count", "-c")
    ratio: float
    level: int = option(default=5)
    strict: bool | None


@dataclasses.dataclass
class Plain:
    name: str
    verbose: bool = False


class TestBind(TestCase):

    def testInlineOptionAndFlag(self):
        value, consumed = bind(["hello.txt", "--out=out.txt", "--usemarkdown"], CreateText)
        self.assertEqual(value, CreateText("hello.txt", "out.txt", True))
        self.assertEqual(consumed, 3)

    def testSpacedShortOption(self):
        value, consumed = bind(["in.txt", "-o", "o.txt"], CreateText)
        self.assertEqual(value, CreateText("in.txt", "o.txt", False))
        self.assertEqual(consumed, 3)

    def testScanStopsAtFirstPlainToken(self):
        value, consumed = bind(["in.txt", "--usemarkdown", "extra", "--out=x"], CreateText)
        self.assertEqual(value, CreateText("in.txt", "", True))
        self.assertEqual(consumed, 2)

    def testLoneDashStopsScan(self):
        _, consumed = bind(["in.txt", "-"], CreateText)
        self.assertEqual(consumed, 1)

    def testMissingPositional(self):
        with self.assertRaises(InsufficientArgsError) as context:
            bind([], CreateText)
        self.assertEqual(context.exception.options["position"], 0)
        self.assertEqual(context.exception.options["field"], "input")

    def testMissingOptionValue(self):
        with self.assertRaises(MissingOptionValueError) as context:
            bind(["in.txt", "--out"], CreateText)
        self.assertEqual(context.exception.message, "missing value for --out")

    def testUnknownOptions(self):
        for tokens in (["in.txt", "--nope"], ["in.txt", "--nope=1"], ["in.txt", "-z"]):
            with self.subTest(tokens=tokens), self.assertRaises(UnknownOptionError):
                bind(tokens, CreateText)

    def testUnknownInlineNameIsReported(self):
        with self.assertRaises(UnknownOptionError) as context:
            bind(["in.txt", "--nope=1"], CreateText)
        self.assertEqual(context.exception.options["input"], "--nope")

    def testInlineBoolValue(self):
        value, _ = bind(["in.txt", "--usemarkdown=false"], CreateText)
        self.assertIs(value.use_markdown, False)
        value, _ = bind(["in.txt", "--usemarkdown=T"], CreateText)
        self.assertIs(value.use_markdown, True)

    def testMalformedValueNamesField(self):
        with self.assertRaises(MalformedValueError) as context:
            bind(["--count", "many"], Tuning)
        self.assertEqual(context.exception.options["field"], "count")
        self.assertEqual(context.exception.options["input"], "--count")

    def testNullableAndDefaults(self):
        value, consumed = bind([], Tuning)
        self.assertEqual(consumed, 0)
        self.assertIsNone(value.count)
        self.assertIsNone(value.strict)
        self.assertEqual(value.ratio, 0.0)
        self.assertEqual(value.level, 5)

        value, consumed = bind(["-c", "3", "--ratio=0.5", "--level", "9", "--strict"], Tuning)
        self.assertEqual(consumed, 6)
        self.assertEqual((value.count, value.ratio, value.level, value.strict), (3, 0.5, 9, True))

    def testPlainDataclassGetsZeroForRequiredFields(self):
        value, consumed = bind([], Plain)
        self.assertEqual((value, consumed), (Plain(""), 0))
        value, consumed = bind(["--name", "x", "--verbose"], Plain)
        self.assertEqual((value, consumed), (Plain("x", True), 3))

    def testPositionalGapsConsumeNothing(self):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")

            @record
            class Gapped:
                first: str = positional(0)
                third: int = positional(2)

        value, consumed = bind(["a", "7", "rest"], Gapped)
        self.assertEqual((value.first, value.third), ("a", 7))
        self.assertEqual(consumed, 2)

    def testUnsupportedFieldFailsOnlyWhenBound(self):
        @record
        class Listing:
            items: list = option(default_factory=list)

        value, _ = bind([], Listing)
        self.assertEqual(value.items, [])
        with self.assertRaises(UnsupportedTypeError):
            bind(["--items", "a"], Listing)


if __name__ == "__main__":
    unittest.main()
