"""Tests for type classification."""

from hidl2aidl.classify import TypeKind, classify
from hidl2aidl.fqname import parse_fqname
from hidl2aidl.model import ArrayType, ExternalType, ScalarType, SpecialType, StringType


def describe_classify():
    def describes_scalars(expect):
        desc = classify(ScalarType("uint32"))

        expect(desc.kind) == TypeKind.SCALAR
        expect(desc.scalar.signed) == False
        expect(desc.scalar.bits) == 32

    def resolves_typedefs(expect, load):
        desc = classify(load("hidl2aidl.test@1.1::Alias"))

        expect(desc.kind) == TypeKind.SCALAR
        expect(desc.scalar.name) == "uint32"

    def records_the_enum_backing_scalar(expect, load):
        value = load("hidl2aidl.test@1.0::Value")
        desc = classify(value)

        expect(desc.kind) == TypeKind.ENUM
        expect(desc.scalar.name) == "uint32"
        expect(desc.named) == value
        expect(desc.is_scalar_like) == True

    def tells_safe_unions_from_plain_unions(expect, load):
        safe = classify(load("hidl2aidl.test@1.1::SafeUnionBar"))
        plain = classify(load("hidl2aidl.test@1.1::LegacyUnion"))

        expect(safe.kind) == TypeKind.NAMED_UNION
        expect(safe.safe) == True
        expect(plain.kind) == TypeKind.NAMED_UNION
        expect(plain.safe) == False

    def describes_containers(expect, load):
        payload = load("hidl2aidl.test@1.1::Payload")
        nested = classify(payload.fields[3].type)

        expect(nested.kind) == TypeKind.SEQUENCE
        expect(nested.element.is_container) == True

        array = classify(ArrayType(StringType(), 4))
        expect(array.kind) == TypeKind.FIXED_ARRAY
        expect(array.length) == 4
        expect(array.element.kind) == TypeKind.STRING

    def treats_structs_and_unknown_types_as_records(expect, load):
        struct = classify(load("hidl2aidl.test@1.1::Outer"))
        external = classify(ExternalType(fq_name=parse_fqname("other@1.0::Thing")))

        expect(struct.kind) == TypeKind.NAMED_RECORD
        expect(external.kind) == TypeKind.NAMED_RECORD

    def marks_special_types_unsupported(expect):
        desc = classify(SpecialType("memory"))

        expect(desc.kind) == TypeKind.UNSUPPORTED
        expect(desc.label) == "memory"
