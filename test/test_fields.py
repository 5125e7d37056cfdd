"""
Fields module tests (record declaration and metadata extraction).

Scope
- Default option names, explicit names, dual-registered positionals.
- Zero defaults filled by @record, nullable fields, explicit defaults.
- Declaration mistakes (InvalidRegistrationError) and warnings.

Conventions
- Test method names follow CamelCase per project convention.
- Records that warn at extraction are declared inside catch_warnings blocks.
"""
import dataclasses
import typing
import unittest
import warnings
from unittest import TestCase

from argbind import Kind, record, positional, option, extract
from argbind.faults import InvalidRegistrationError, ShadowedOptionWarning, PositionalGapWarning


@record
class CreateText:
    input: str = positional(0, help="input file")
    output: str = option("--out", "-o", help="output file")
    use_markdown: bool = option("--usemarkdown")


@record
class Server:
    host: str = positional(0, "--host", "-H")
    port: int = positional(1)
    OutDir: str
    read_timeout: float | None
    verbose: bool
    retries: int = option(default=3)
    registry: typing.ClassVar[dict] = {}


class TestExtract(TestCase):

    def testCreateTextTables(self):
        fieldmap = extract(CreateText)
        self.assertEqual(list(fieldmap.positional), [0])
        self.assertEqual(fieldmap.positional[0].name, "input")
        self.assertEqual(sorted(fieldmap.long), ["--out", "--usemarkdown"])
        self.assertEqual(list(fieldmap.short), ["-o"])
        self.assertIs(fieldmap.long["--out"], fieldmap.short["-o"])
        self.assertTrue(fieldmap.long["--usemarkdown"].flag)
        self.assertEqual(fieldmap.last, 0)
        self.assertEqual([spec.name for spec in fieldmap.options], ["output", "use_markdown"])

    def testDefaultLongNamesAreKebabCase(self):
        fieldmap = extract(Server)
        self.assertIn("--out-dir", fieldmap.long)
        self.assertIn("--read-timeout", fieldmap.long)
        self.assertIn("--verbose", fieldmap.long)
        self.assertIn("--retries", fieldmap.long)
        self.assertNotIn("--registry", fieldmap.long)

    def testPositionalWithNamesIsDualRegistered(self):
        fieldmap = extract(Server)
        self.assertIs(fieldmap.positional[0], fieldmap.long["--host"])
        self.assertIs(fieldmap.positional[0], fieldmap.short["-H"])
        self.assertIsNone(fieldmap.positional[1].long)

    def testKindsAndNullability(self):
        fieldmap = extract(Server)
        timeout = fieldmap.long["--read-timeout"]
        self.assertIs(timeout.kind, Kind.FLOAT64)
        self.assertTrue(timeout.nullable)
        self.assertIsNone(timeout.zero)
        self.assertIs(fieldmap.positional[1].kind, Kind.INT)
        self.assertEqual(fieldmap.positional[1].zero, 0)

    def testDisplayFallsBackToWords(self):
        fieldmap = extract(Server)
        self.assertEqual(fieldmap.positional[0].display, "host")
        self.assertEqual(fieldmap.long["--out-dir"].display, "out dir")
        self.assertEqual(extract(CreateText).positional[0].display, "input file")

    def testExtractIsCached(self):
        self.assertIs(extract(CreateText), extract(CreateText))

    def testPlainDataclassIsAccepted(self):
        @dataclasses.dataclass
        class Plain:
            name: str
            count: int = 1

        fieldmap = extract(Plain)
        self.assertEqual(sorted(fieldmap.long), ["--count", "--name"])
        self.assertFalse(fieldmap.long["--name"].defaulted)
        self.assertTrue(fieldmap.long["--count"].defaulted)

    def testNonRecordRejected(self):
        with self.assertRaises(InvalidRegistrationError):
            extract(int)
        with self.assertRaises(InvalidRegistrationError):
            extract(CreateText())

    def testDuplicatePositionalIndexRejected(self):
        with self.assertRaises(InvalidRegistrationError):
            @record
            class Broken:
                first: str = positional(0)
                second: str = positional(0)

    def testShadowedOptionWarnsAndLaterWins(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")

            @record
            class Shadowed:
                one: str = option("--name")
                two: str = option("--name")

        self.assertEqual([type(warning.message) for warning in caught], [ShadowedOptionWarning])
        self.assertEqual(extract(Shadowed).long["--name"].name, "two")

    def testPositionalGapWarnsOnce(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")

            @record
            class Gapped:
                first: str = positional(0)
                third: str = positional(2)

            extract(Gapped)

        self.assertEqual([type(warning.message) for warning in caught], [PositionalGapWarning])
        self.assertEqual(caught[0].message.options["gaps"], (1,))
        self.assertEqual(extract(Gapped).last, 2)


class TestRecord(TestCase):

    def testZeroDefaults(self):
        self.assertEqual(CreateText(), CreateText("", "", False))
        server = Server()
        self.assertEqual((server.host, server.port, server.OutDir), ("", 0, ""))
        self.assertIsNone(server.read_timeout)
        self.assertIs(server.verbose, False)

    def testExplicitDefaultsKept(self):
        self.assertEqual(Server().retries, 3)

    def testOptionsForwardedToDataclass(self):
        @record(frozen=True)
        class Frozen:
            name: str

        with self.assertRaises(dataclasses.FrozenInstanceError):
            Frozen().name = "x"  # NOQA

    def testRecordRequiresClass(self):
        with self.assertRaises(InvalidRegistrationError):
            record(lambda: None)


class TestDeclarations(TestCase):

    def testOptionNamesValidated(self):
        for names in (("out",), ("---out",), ("--out_dir",), ("-",), ("",), (3,)):
            with self.subTest(names=names), self.assertRaises(InvalidRegistrationError):
                option(*names)

    def testOptionAcceptsSingleLongAndShort(self):
        with self.assertRaises(InvalidRegistrationError):
            option("--one", "--two")
        with self.assertRaises(InvalidRegistrationError):
            option("-a", "-b")
        option("--out", "-o")
        option("--naïve")

    def testHelpValidated(self):
        with self.assertRaises(InvalidRegistrationError):
            option(help="   ")
        with self.assertRaises(InvalidRegistrationError):
            option(help=3)

    def testPositionalIndexValidated(self):
        for index in (-1, True, "0", 1.0):
            with self.subTest(index=index), self.assertRaises(InvalidRegistrationError):
                positional(index)


if __name__ == "__main__":
    unittest.main()
