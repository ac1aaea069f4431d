import struct

import pytest

from sdf_atlas.descriptor import (
    GLYPH_FIELDS,
    Descriptor,
    DescriptorError,
    DescriptorWriter,
    GlyphDescriptor,
    decode_descriptor,
    encode_descriptor,
    read_descriptor,
)
from sdf_atlas.kerning import KerningRun


def f32_bits(value):
    return struct.unpack("<I", struct.pack("<f", value))[0]


def sample_descriptor():
    glyphs = [
        GlyphDescriptor(0x41, 0.625, 0.03125, 0.0, 0.5625, 0.71875, 0.0625, 0.1, 0.3, 0.7),
        GlyphDescriptor(0xE9, 0.5, -0.1, 0.2, 0.4375, 0.8, 0.4, 0.1, 1 / 3, 0.7),
    ]
    kerning = [KerningRun(0.0, 1), KerningRun(-0.0625, 2), KerningRun(0.0, 1)]
    return Descriptor(1.15625, 0.9375, -0.21875, glyphs, kerning)


def test_layout_matches_fixed_byte_order():
    data = encode_descriptor(sample_descriptor())

    assert struct.unpack_from("<I", data, 0) == (2,)
    assert struct.unpack_from("<3f", data, 4) == (1.15625, 0.9375, -0.21875)
    assert struct.unpack_from("<I", data, 16) == (0x41,)
    record = 4 + 9 * 4
    assert struct.unpack_from("<I", data, 16 + record) == (0xE9,)
    kerning_start = 16 + 2 * record
    assert struct.unpack_from("<fI", data, kerning_start) == (0.0, 1)
    assert len(data) == kerning_start + 3 * 8


def test_round_trip_is_bit_exact():
    original = sample_descriptor()
    decoded = decode_descriptor(encode_descriptor(original))

    assert decoded.glyph_count == 2
    for name in ("line_height", "ascender", "descender"):
        assert f32_bits(getattr(decoded, name)) == f32_bits(getattr(original, name))
    for got, want in zip(decoded.glyphs, original.glyphs):
        assert got.codepoint == want.codepoint
        for name, kind in GLYPH_FIELDS[1:]:
            assert f32_bits(getattr(got, name)) == f32_bits(getattr(want, name)), name
    assert [(f32_bits(r.value), r.count) for r in decoded.kerning] == [
        (f32_bits(r.value), r.count) for r in original.kerning
    ]
    # Re-encoding the decoded descriptor reproduces the same bytes.
    assert encode_descriptor(decoded) == encode_descriptor(original)


def test_kerning_matrix_expands_rows():
    matrix = sample_descriptor().kerning_matrix()
    assert matrix == [[0.0, -0.0625], [-0.0625, 0.0]]


def test_reader_validates_kerning_total():
    descriptor = sample_descriptor()
    descriptor.kerning = [KerningRun(0.0, 3)]
    with pytest.raises(DescriptorError, match="expected 4"):
        decode_descriptor(encode_descriptor(descriptor))


def test_reader_rejects_truncated_data():
    data = encode_descriptor(sample_descriptor())
    with pytest.raises(DescriptorError):
        decode_descriptor(data[:30])
    with pytest.raises(DescriptorError):
        decode_descriptor(data[:-3])


def test_writer_appends_little_endian_fields():
    writer = DescriptorWriter()
    writer.uint32(1)
    writer.float32(1.0)
    assert writer.getvalue() == b"\x01\x00\x00\x00\x00\x00\x80\x3f"


def test_read_descriptor_from_file(tmp_path):
    path = tmp_path / "font.dat"
    path.write_bytes(encode_descriptor(sample_descriptor()))
    assert read_descriptor(path).glyphs[1].codepoint == 0xE9


def test_empty_glyph_set():
    data = encode_descriptor(Descriptor(1.0, 0.75, -0.25))
    assert len(data) == 16
    assert decode_descriptor(data).glyph_count == 0
