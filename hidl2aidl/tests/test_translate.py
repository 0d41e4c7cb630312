"""Tests for translate function generation."""

import os

from hidl2aidl.backends import BackendVariant, get_backend
from hidl2aidl.fqname import parse_fqname
from hidl2aidl.merge import merge
from hidl2aidl.model import (
    CompoundStyle,
    CompoundType,
    ExternalType,
    FieldDescriptor,
    ScalarType,
    VectorType,
)
from hidl2aidl.notes import NoteKind, Notes
from hidl2aidl.replaced import ReplacedTypeRegistry
from hidl2aidl.translate import emit, render_translation

FILE_DIR = os.path.dirname(os.path.realpath(__file__))


def _conversion_set(*types):
    return {t.fq_name: t for t in types}


def _struct(name, **fields):
    compound = CompoundType(fq_name=parse_fqname(name), style=CompoundStyle.STRUCT)
    compound.fields = [
        FieldDescriptor(name=n, type=t, owner=compound, origin=compound.version, access=n)
        for n, t in fields.items()
    ]
    return compound


def describe_scalar_guards():
    def guards_unsigned_scalars(expect, load):
        function = emit(merge(load("hidl2aidl.test@1.0::IFoo.BigStruct")), "cpp")
        body = function.body

        expect("if (in.value > 127 || in.value < 0) {" in body) == True
        expect("if (in.value2 < 0) {" in body) == True
        expect("if (in.value3 > 2147483647 || in.value3 < 0) {" in body) == True
        expect("if (in.value4 > 9223372036854775807L || in.value4 < 0) {" in body) == True
        expect(body.count("    return false;")) == 4

    def leaves_signed_and_floating_scalars_unguarded(expect, load):
        function = emit(merge(load("hidl2aidl.test@1.0::IFoo.BigStruct")), "cpp")

        expect("out->value5 = static_cast<double>(in.value5);" in function.body) == True
        expect(any("in.value5 <" in line for line in function.body)) == False

    def comments_every_guard(expect, load):
        function = emit(merge(load("hidl2aidl.test@1.0::IFoo.BigStruct")), "ndk")
        comment = (
            "// FIXME This requires conversion between signed and unsigned. "
            "Change this if it doesn't suit your needs."
        )

        expect(function.body.count(comment)) == 4

    def throws_in_java(expect, load):
        function = emit(merge(load("hidl2aidl.test@1.0::IFoo.BigStruct")), "java")

        expect(
            '    throw new RuntimeException("Unsafe conversion between signed and unsigned '
            'scalars for field: in.value3");' in function.body
        ) == True
        expect("out.value2 = (char) in.value2;" in function.body) == True

    def casts_enums_without_a_guard(expect, load):
        function = emit(merge(load("hidl2aidl.test@1.0::IFoo.BigStruct")), "cpp")

        expect(function.body[-2]) == (
            "out->value6 = static_cast<hidl2aidl::test::Value>(in.value6);"
        )

    def admits_unsigned_values_up_to_the_signed_maximum(expect, load):
        function = emit(merge(load("hidl2aidl.test@1.0::IFoo.BigStruct")), "cpp")
        guard = next(line for line in function.body if line.startswith("if (in.value3 >"))
        limit = int(guard.split(" > ")[1].split(" ")[0])

        expect(0x70000000 <= limit) == True
        expect(0xF0000000 > limit) == True

    def unboxes_java_short_elements(expect):
        compound = _struct("test.pkg@1.0::Shorts", v=VectorType(ScalarType("int16")))
        function = emit(merge(compound), "java")

        expect("    out.v = new char[in.v.size()];" in function.body) == True
        expect("        if (in.v.get(i).shortValue() < 0) {" in function.body) == True
        expect("        out.v[i] = (char) in.v.get(i).shortValue();" in function.body) == True
        expect(any("(char) in.v.get(i);" in line for line in function.body)) == False


def describe_struct_translation():
    def writes_the_cpp_signature(expect, load):
        function = emit(merge(load("hidl2aidl.test@1.0::IFoo.BigStruct")), "cpp")

        expect(function.signature) == (
            "__attribute__((warn_unused_result)) bool translate(const "
            "::hidl2aidl::test::V1_0::IFoo::BigStruct& in, hidl2aidl::test::IFooBigStruct* out)"
        )

    def writes_the_java_signature(expect, load):
        function = emit(merge(load("hidl2aidl.test@1.0::IFoo.BigStruct")), "java")

        expect(function.signature) == (
            "static public hidl2aidl.test.IFooBigStruct h2aTranslate("
            "hidl2aidl.test.V1_0.IFoo.BigStruct in)"
        )
        expect(function.body[0]) == (
            "hidl2aidl.test.IFooBigStruct out = new hidl2aidl.test.IFooBigStruct();"
        )
        expect(function.body[-1]) == "return out;"

    def wraps_strings_per_backend(expect, load):
        schema = merge(load("hidl2aidl.test@1.0::OnlyIn10"))

        expect(emit(schema, "cpp").body[-2]) == "out->str = String16(in.str.c_str());"
        expect(emit(schema, "ndk").body) == ("out->str = in.str;", "return true;")
        expect(emit(schema, "java").body[1]) == "out.str = in.str;"

    def notes_the_utf8_limitation_for_the_native_backend(expect, load):
        schema = merge(load("hidl2aidl.test@1.0::OnlyIn10"))

        expect(emit(schema, "cpp").body[0]) == (
            "// FIXME: a hidl_string that is not valid UTF-8 becomes an empty String16."
        )

    def reads_merged_fields_through_version_fields(expect, load):
        outer = load("hidl2aidl.test@1.1::Outer")
        schema = merge(outer)
        inner = schema.sub_types[0]
        conversion_set = _conversion_set(outer, inner)

        cpp = emit(schema, "cpp", conversion_set=conversion_set)
        java = emit(schema, "java", conversion_set=conversion_set)

        expect(cpp.body[0]) == "out->a = static_cast<int32_t>(in.v1_0.a);"
        expect("if (!translate(in.v1_0.inner, &out->inner)) return false;" in cpp.body) == True
        expect("out.inner = h2aTranslate(in.v1_0.inner);" in java.body) == True
        expect("if (in.b > 2147483647 || in.b < 0) {" in cpp.body) == True

    def marks_unknown_types_once(expect, load):
        notes = Notes()
        function = emit(merge(load("hidl2aidl.test@1.1::Payload")), "cpp", notes=notes)
        marker = "#error FIXME Unknown type: android.hardware.unknown@1.0::Thing"

        expect(function.body.count(marker)) == 1
        expect([note.message for note in notes.of_kind(NoteKind.UNKNOWN_TYPE)]) == [
            "An unknown named type was found in translation: android.hardware.unknown@1.0::Thing "
            '(field "unknown" of hidl2aidl.test@1.1::Payload)'
        ]

    def marks_each_field_of_an_unknown_type(expect):
        thing = ExternalType(fq_name=parse_fqname("other@1.0::Thing"))
        compound = _struct("test.pkg@1.0::Pair", x=thing, y=thing)
        notes = Notes()

        for variant in ("cpp", "ndk", "java"):
            function = emit(merge(compound), variant, notes=notes)
            expect(function.body.count("#error FIXME Unknown type: other@1.0::Thing")) == 2

        messages = [note.message for note in notes.of_kind(NoteKind.UNKNOWN_TYPE)]
        expect(len(messages)) == 2
        expect('(field "x" of test.pkg@1.0::Pair)' in messages[0]) == True
        expect('(field "y" of test.pkg@1.0::Pair)' in messages[1]) == True

    def uses_replaced_type_snippets(expect, load):
        registry = ReplacedTypeRegistry.default()
        registry.load(f"{FILE_DIR}/fixtures/replaced.json")
        notes = Notes()

        function = emit(
            merge(load("hidl2aidl.test@1.1::Payload")), "cpp", registry=registry, notes=notes
        )

        expect("// Thing is converted by hand." in function.body) == True
        expect(notes.of_kind(NoteKind.UNKNOWN_TYPE)) == []

    def covers_every_field(expect, load):
        function = emit(merge(load("hidl2aidl.test@1.1::Payload")), "cpp")
        markers = [line for line in function.body if line.startswith("#error")]

        expect(len(markers)) == 4
        for name in ("values", "bytes", "names", "color", "stamp"):
            expect(sum(f"out->{name}" in line for line in function.body)) == 1

    def marks_unsupported_containers(expect, load):
        notes = Notes()
        function = emit(merge(load("hidl2aidl.test@1.1::Payload")), "java", notes=notes)

        expect(
            "#error Nested arrays and vectors are currently not supported. Needs "
            "implementation for field: nested" in function.body
        ) == True
        expect(
            "#error Arrays of NamedTypes are not currently supported. Needs "
            "implementation for field: records" in function.body
        ) == True
        expect(len(notes.of_kind(NoteKind.UNSUPPORTED))) == 3

    def loops_over_fixed_arrays(expect, load):
        function = emit(merge(load("hidl2aidl.test@1.1::Payload")), "cpp")

        expect("    size_t size = sizeof(in.bytes)/sizeof(in.bytes[0]);" in function.body) == True
        expect(
            "        out->bytes.push_back(static_cast<int8_t>(in.bytes[i]));" in function.body
        ) == True

    def allocates_java_arrays(expect, load):
        function = emit(merge(load("hidl2aidl.test@1.1::Payload")), "java")

        expect("if (in.values != null) {" in function.body) == True
        expect("    out.values = new int[in.values.size()];" in function.body) == True
        expect("        out.values[i] = in.values.get(i);" in function.body) == True

    def refuses_plain_union_fields(expect, load):
        notes = Notes()
        function = emit(merge(load("hidl2aidl.test@1.1::IBar.Inner")), "ndk", notes=notes)

        expect(
            "#error FIXME Cannot translate union without discriminator: "
            "hidl2aidl.test@1.1::LegacyUnion" in function.body
        ) == True
        expect(len(notes)) == 1


def describe_safe_union_translation():
    def dispatches_on_the_discriminator(expect, load):
        union = load("hidl2aidl.test@1.1::SafeUnionBar")
        schema = merge(union)
        conversion_set = _conversion_set(union, load("hidl2aidl.test@1.1::Outer"))

        function = emit(schema, "cpp", conversion_set=conversion_set)
        cases = [line for line in function.body if line.startswith("    case ")]

        expect(function.body[0]) == "switch (in.getDiscriminator()) {"
        expect(len(cases)) == len(schema.fields)
        expect(function.body.count("    default:")) == 1
        expect(function.body.count("        break;")) == len(schema.fields)
        expect(cases[1]) == "    case ::hidl2aidl::test::V1_1::SafeUnionBar::hidl_discriminator::b:"

    def sets_fields_through_the_tag(expect, load):
        union = load("hidl2aidl.test@1.1::SafeUnionBar")
        conversion_set = _conversion_set(union, load("hidl2aidl.test@1.1::Outer"))

        function = emit(merge(union), "cpp", conversion_set=conversion_set)

        expect(
            "        out->set<hidl2aidl::test::SafeUnionBar::a>(static_cast<int8_t>(in.a()));"
            in function.body
        ) == True
        expect("            if (!translate(in.d(), &d)) return false;" in function.body) == True
        expect(
            "            out->set<hidl2aidl::test::SafeUnionBar::d>(std::move(d));"
            in function.body
        ) == True
        expect("        // Nothing to translate for Monostate." in function.body) == True
        expect(
            "            out->set<hidl2aidl::test::SafeUnionBar::f>(std::move(f));"
            in function.body
        ) == True

    def uses_setters_in_java(expect, load):
        union = load("hidl2aidl.test@1.1::SafeUnionBar")
        conversion_set = _conversion_set(union, load("hidl2aidl.test@1.1::Outer"))

        function = emit(merge(union), "java", conversion_set=conversion_set)

        expect("        out.setC(in.c());" in function.body) == True
        expect("        out.setD(h2aTranslate(in.d()));" in function.body) == True
        expect("            byte[] f = new byte[in.f().size()];" in function.body) == True
        expect(
            '        throw new RuntimeException("Unknown discriminator value: " + '
            'Integer.toString(in.getDiscriminator()));' in function.body
        ) == True


def describe_plain_union_translation():
    def emits_a_commented_stub(expect, load):
        notes = Notes()
        function = emit(merge(load("hidl2aidl.test@1.1::LegacyUnion")), "cpp", notes=notes)
        lines = function.render().splitlines()

        expect(function.is_stub) == True
        expect(lines[0]) == (
            "// FIXME not enough information to safely convert. Remove this function or "
            "fill it out using the custom discriminators."
        )
        expect(lines[1]) == f"// {function.signature}"
        expect(len(notes.of_kind(NoteKind.UNSUPPORTED))) == 1


def describe_render_translation():
    def renders_native_header_and_source(expect, load):
        outer = load("hidl2aidl.test@1.1::Outer")
        schema = merge(outer)
        inner = schema.sub_types[0]
        value = load("hidl2aidl.test@1.0::Value")
        conversion_set = _conversion_set(outer, inner, value)
        schemas = {outer.fq_name: schema, inner.fq_name: merge(inner)}

        files = render_translation(
            get_backend(BackendVariant.NDK), outer.fq_name.package_and_version(),
            conversion_set, schemas,
        )
        header = files["include/hidl2aidl/test/translate-ndk.h"]
        source = files["hidl2aidl/test/translate-ndk.cpp"]

        expect(sorted(files)) == [
            "hidl2aidl/test/translate-ndk.cpp",
            "include/hidl2aidl/test/translate-ndk.h",
        ]
        expect('#include "aidl/hidl2aidl/test/OuterInner.h"' in header) == True
        expect('#include "hidl2aidl/test/1.0/types.h"' in header) == True
        expect('#include "hidl2aidl/test/1.1/types.h"' in header) == True
        expect(header.count("bool translate(")) == 2
        expect('#include "hidl2aidl/test/translate-ndk.h"' in source) == True
        expect(
            "static_assert(aidl::hidl2aidl::test::Value::B == "
            "static_cast<aidl::hidl2aidl::test::Value>(::hidl2aidl::test::V1_0::Value::B));"
            in source
        ) == True
        expect(source.rstrip().endswith("}  // namespace android::h2a")) == True

    def includes_interface_headers(expect, load):
        big = load("hidl2aidl.test@1.0::IFoo.BigStruct")

        files = render_translation(
            get_backend("cpp"), big.fq_name.package_and_version(), _conversion_set(big),
            {big.fq_name: merge(big)},
        )

        header = files["include/hidl2aidl/test/translate-cpp.h"]
        expect('#include "hidl2aidl/test/1.0/IFoo.h"' in header) == True

    def renders_a_java_class(expect, load):
        only = load("hidl2aidl.test@1.0::OnlyIn10")

        files = render_translation(
            get_backend("java"), only.fq_name.package_and_version(), _conversion_set(only),
            {only.fq_name: merge(only)},
        )

        expect(list(files)) == ["hidl2aidl/test/Translate.java"]
        source = files["hidl2aidl/test/Translate.java"]
        expect("package hidl2aidl.test;" in source) == True
        expect("public class Translate {" in source) == True
        expect("    static public hidl2aidl.test.OnlyIn10 h2aTranslate(" in source) == True
