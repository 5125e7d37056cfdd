"""
Kinds module tests (token coercion and annotation resolution).

Conventions
- Test method names follow CamelCase per project convention.
"""
import math
import typing
import unittest
from inspect import Parameter
from unittest import TestCase

from argbind import Kind, coerce, int64, float64
from argbind.faults import MalformedValueError, UnsupportedTypeError, FaultCode
from argbind.kinds import label, resolve, unwrap, describe


class TestCoerce(TestCase):

    def testStringIsIdentity(self):
        self.assertEqual(coerce(" spaced  ", Kind.STRING), " spaced  ")
        self.assertEqual(coerce("", Kind.STRING), "")

    def testIntAcceptsSignedDecimal(self):
        self.assertEqual(coerce("42", Kind.INT), 42)
        self.assertEqual(coerce("-7", Kind.INT), -7)
        self.assertEqual(coerce("+3", Kind.INT), 3)
        self.assertEqual(coerce("007", Kind.INT64), 7)

    def testIntRejectsNonAsciiAndDecorations(self):
        for token in ("4x", " 4", "4 ", "1_000", "0x10", "1.0", "", "٣"):
            with self.subTest(token=token), self.assertRaises(MalformedValueError):
                coerce(token, Kind.INT)

    def testIntRangeIsSixtyFourBits(self):
        self.assertEqual(coerce("9223372036854775807", Kind.INT64), 2 ** 63 - 1)
        self.assertEqual(coerce("-9223372036854775808", Kind.INT), -2 ** 63)
        with self.assertRaises(MalformedValueError):
            coerce("9223372036854775808", Kind.INT64)
        with self.assertRaises(MalformedValueError):
            coerce("-9223372036854775809", Kind.INT)

    def testFloatSpellings(self):
        self.assertEqual(coerce("3.14", Kind.FLOAT64), 3.14)
        self.assertEqual(coerce("1e3", Kind.FLOAT64), 1000.0)
        self.assertEqual(coerce(".5", Kind.FLOAT64), 0.5)
        self.assertEqual(coerce("-2", Kind.FLOAT64), -2.0)
        self.assertTrue(math.isinf(coerce("inf", Kind.FLOAT64)))
        self.assertTrue(math.isinf(coerce("-Infinity", Kind.FLOAT64)))
        self.assertTrue(math.isnan(coerce("NaN", Kind.FLOAT64)))

    def testFloatRejectsOverflowAndDecorations(self):
        for token in ("1e400", "1_0.0", " 1.0", "abc", "", "1e"):
            with self.subTest(token=token), self.assertRaises(MalformedValueError):
                coerce(token, Kind.FLOAT64)

    def testBoolTokens(self):
        for token in ("1", "t", "T", "TRUE", "true", "True"):
            self.assertIs(coerce(token, Kind.BOOL), True)
        for token in ("0", "f", "F", "FALSE", "false", "False"):
            self.assertIs(coerce(token, Kind.BOOL), False)
        for token in ("yes", "tRUE", "no", "", "2"):
            with self.subTest(token=token), self.assertRaises(MalformedValueError):
                coerce(token, Kind.BOOL)

    def testMalformedCarriesTokenAndKind(self):
        with self.assertRaises(MalformedValueError) as context:
            coerce("abc", Kind.INT)
        fault = context.exception
        self.assertEqual(fault.message, "malformed int value 'abc'")
        self.assertEqual(fault.options["token"], "abc")
        self.assertIs(fault.options["kind"], Kind.INT)
        self.assertEqual(fault.code, FaultCode.MALFORMED_VALUE)
        self.assertIsInstance(fault, ValueError)

    def testUnsupportedKindNamesIt(self):
        with self.assertRaises(UnsupportedTypeError) as context:
            coerce("a", list)
        self.assertIn("list", context.exception.message)
        self.assertIsInstance(context.exception, TypeError)

    def testNonStringTokenRejected(self):
        with self.assertRaises(TypeError):
            coerce(3, Kind.INT)


class TestResolve(TestCase):

    def testBuiltinAnnotations(self):
        self.assertIs(resolve(str), Kind.STRING)
        self.assertIs(resolve(int), Kind.INT)
        self.assertIs(resolve(float), Kind.FLOAT64)
        self.assertIs(resolve(bool), Kind.BOOL)

    def testMarkers(self):
        self.assertIs(resolve(int64), Kind.INT64)
        self.assertIs(resolve(float64), Kind.FLOAT64)

    def testMissingAnnotationIsString(self):
        self.assertIs(resolve(Parameter.empty), Kind.STRING)

    def testUnknownAnnotationIsNone(self):
        self.assertIsNone(resolve(list))
        self.assertIsNone(resolve(list[int]))

    def testUnwrapNullable(self):
        self.assertEqual(unwrap(int | None), (int, True))
        self.assertEqual(unwrap(typing.Optional[str]), (str, True))
        self.assertEqual(unwrap(int), (int, False))
        self.assertEqual(unwrap(int | str), (int | str, False))

    def testLabels(self):
        self.assertEqual(
            [label(kind) for kind in Kind],
            ["<string>", "<int>", "<int64>", "<float64>", "<bool>"],
        )
        self.assertEqual(label(None), "<value>")

    def testDescribe(self):
        self.assertEqual(describe(Kind.INT64), "int64")
        self.assertEqual(describe(list), "list")


if __name__ == "__main__":
    unittest.main()
