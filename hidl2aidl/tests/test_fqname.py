"""Tests for qualified name parsing."""

import pytest

from hidl2aidl.errors import InvalidNameError
from hidl2aidl.fqname import QualifiedName, VersionTag, parse_fqname


def describe_parse_fqname():
    def parses_package_and_version(expect):
        fq_name = parse_fqname("android.hardware.foo@1.2")

        expect(fq_name.package) == "android.hardware.foo"
        expect(fq_name.version) == VersionTag(1, 2)
        expect(fq_name.is_fully_qualified) == False

    def parses_nested_type(expect):
        fq_name = parse_fqname("android.hardware.foo@1.0::IBar.Baz")

        expect(fq_name.name) == "Baz"
        expect(fq_name.scope) == ("IBar",)
        expect(fq_name.local_name) == "IBar.Baz"
        expect(str(fq_name)) == "android.hardware.foo@1.0::IBar.Baz"

    def ignores_surrounding_whitespace(expect):
        expect(parse_fqname(" foo@1.0 ")) == QualifiedName("foo", VersionTag(1, 0))

    def rejects_a_name_without_version():
        with pytest.raises(InvalidNameError):
            parse_fqname("android.hardware.foo")

    def rejects_a_malformed_version():
        with pytest.raises(InvalidNameError):
            parse_fqname("android.hardware.foo@1")


def describe_version_tag():
    def orders_by_major_then_minor(expect):
        expect(VersionTag(1, 1) > VersionTag(1, 0)) == True
        expect(VersionTag(2, 0) > VersionTag(1, 9)) == True
        expect(sorted([VersionTag(2, 0), VersionTag(1, 2), VersionTag(1, 10)])) == [
            VersionTag(1, 2),
            VersionTag(1, 10),
            VersionTag(2, 0),
        ]

    def names_the_cpp_namespace(expect):
        expect(VersionTag(1, 2).cpp_namespace) == "V1_2"

    def cannot_go_below_minor_zero():
        with pytest.raises(ValueError):
            VersionTag(1, 0).down_rev()


def describe_qualified_name():
    def steps_between_minor_versions(expect):
        fq_name = parse_fqname("foo@1.1::Bar")

        expect(str(fq_name.up_rev())) == "foo@1.2::Bar"
        expect(str(fq_name.down_rev())) == "foo@1.0::Bar"

    def shares_lineage_across_versions(expect):
        expect(parse_fqname("foo@1.1::Bar").same_lineage(parse_fqname("foo@1.0::Bar"))) == True
        expect(parse_fqname("foo@1.1::Bar").same_lineage(parse_fqname("foo@1.1::Baz"))) == False

    def nests_names(expect):
        nested = parse_fqname("foo@1.0::IBar").nested("Baz")

        expect(nested) == parse_fqname("foo@1.0::IBar.Baz")
