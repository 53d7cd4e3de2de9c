import json

import pytest

from csv2json.errors import DestinationWriteError, SourceReadError, ValidationError
from csv2json.models import ConversionConfig, Separator
from csv2json.pipeline import check_source_file, convert_file, convert_text
from csv2json.rules import ENCODING_SAMPLE_BYTES


def _csv(tmp_path, text, name="data.csv", encoding="utf-8"):
    path = tmp_path / name
    path.write_bytes(text.encode(encoding))
    return path


def test_end_to_end_compact(tmp_path):
    source = _csv(tmp_path, "name,age\nAlice,30\nBob,25\n")

    summary = convert_file(ConversionConfig(filepath=source))

    output = tmp_path / "data.json"
    assert summary.destination == str(output)
    assert summary.records_written == 2
    assert output.read_text(encoding="utf-8") == (
        '[{"name":"Alice","age":"30"},{"name":"Bob","age":"25"}]'
    )


def test_order_is_preserved_for_many_rows(tmp_path):
    lines = ["id,value"] + [f"{i},v{i}" for i in range(500)]
    source = _csv(tmp_path, "\n".join(lines) + "\n")

    convert_file(ConversionConfig(filepath=source))

    records = json.loads((tmp_path / "data.json").read_text(encoding="utf-8"))
    assert [r["id"] for r in records] == [str(i) for i in range(500)]
    assert all(len(r) == 2 for r in records)


def test_malformed_rows_are_skipped(tmp_path):
    source = _csv(tmp_path, "a,b\n1,2\nonly-one\n3,4,5\n6,7\n")

    summary = convert_file(ConversionConfig(filepath=source))

    records = json.loads((tmp_path / "data.json").read_text(encoding="utf-8"))
    assert records == [{"a": "1", "b": "2"}, {"a": "6", "b": "7"}]
    assert [m.line for m in summary.malformed_rows] == [3, 4]


def test_header_only_source(tmp_path):
    source = _csv(tmp_path, "a,b\n")

    convert_file(ConversionConfig(filepath=source))
    assert (tmp_path / "data.json").read_text(encoding="utf-8") == "[]"

    convert_file(ConversionConfig(filepath=source, pretty=True))
    assert json.loads((tmp_path / "data.json").read_text(encoding="utf-8")) == []


def test_semicolon_separator(tmp_path):
    source = _csv(tmp_path, "a;b\n1;2\n")

    convert_file(ConversionConfig(filepath=source, separator=Separator.SEMICOLON))

    assert (tmp_path / "data.json").read_text(encoding="utf-8") == '[{"a":"1","b":"2"}]'


def test_pretty_and_compact_hold_the_same_data():
    text = 'name,quote\nAlice,"hello, world"\nBob,"line\nbreak"\nbad\nCarol,x\n'

    compact, _ = convert_text(text, pretty=False)
    pretty, _ = convert_text(text, pretty=True)

    assert "\n" in pretty
    assert json.loads(compact) == json.loads(pretty)
    assert [r["name"] for r in json.loads(compact)] == ["Alice", "Bob", "Carol"]


def test_existing_output_is_overwritten(tmp_path):
    source = _csv(tmp_path, "a\n1\n")
    (tmp_path / "data.json").write_text("stale content that is longer", encoding="utf-8")

    convert_file(ConversionConfig(filepath=source))

    assert (tmp_path / "data.json").read_text(encoding="utf-8") == '[{"a":"1"}]'


def test_explicit_encoding_is_used(tmp_path):
    source = _csv(tmp_path, "name,city\nPaul,Montréal\n", encoding="latin-1")

    summary = convert_file(ConversionConfig(filepath=source, encoding="latin-1"))

    assert summary.encoding == "latin-1"
    records = json.loads((tmp_path / "data.json").read_text(encoding="utf-8"))
    assert records == [{"name": "Paul", "city": "Montréal"}]


def test_utf8_bom_is_stripped_from_header(tmp_path):
    source = tmp_path / "data.csv"
    source.write_bytes(b"\xef\xbb\xbfname,age\nAlice,30\n")

    summary = convert_file(ConversionConfig(filepath=source))

    assert summary.encoding == "utf-8-sig"
    records = json.loads((tmp_path / "data.json").read_text(encoding="utf-8"))
    assert records == [{"name": "Alice", "age": "30"}]


def test_check_source_file_rejects_wrong_extension(tmp_path):
    path = tmp_path / "data.txt"
    path.write_text("a,b\n", encoding="utf-8")

    with pytest.raises(ValidationError, match="is not CSV"):
        check_source_file(path)


def test_check_source_file_rejects_missing_file(tmp_path):
    with pytest.raises(ValidationError, match="does not exist"):
        check_source_file(tmp_path / "missing.csv")


def test_empty_source_is_fatal(tmp_path):
    source = _csv(tmp_path, "")

    with pytest.raises(SourceReadError):
        convert_file(ConversionConfig(filepath=source))

    # the writer stopped after the opening bracket
    assert (tmp_path / "data.json").read_text(encoding="utf-8") == "["


def test_unwritable_destination_is_fatal(tmp_path):
    source = _csv(tmp_path, "a,b\n1,2\n3,4\n")
    # a directory where the output file should go
    (tmp_path / "data.json").mkdir()

    with pytest.raises(DestinationWriteError):
        convert_file(ConversionConfig(filepath=source))


def test_convert_text_summary():
    document, summary = convert_text("a,b\n1,2\n3\n", separator=Separator.COMMA)

    assert document == '[{"a":"1","b":"2"}]'
    assert summary.records_written == 1
    assert len(summary.malformed_rows) == 1
    assert summary.destination is None


@pytest.mark.parametrize(
    "text",
    [
        "k,v\n€,1\n",
        "name,price\nTea,3€\n",
        "城市,人口\n東京,1400万\n",
    ],
)
def test_utf8_without_bom_passes_through_unchanged(tmp_path, text):
    source = _csv(tmp_path, text)

    summary = convert_file(ConversionConfig(filepath=source))

    assert summary.encoding == "utf-8"
    header, row = text.strip().split("\n")
    expected = json.dumps(dict(zip(header.split(","), row.split(","))), ensure_ascii=False, separators=(",", ":"))
    assert (tmp_path / "data.json").read_bytes() == f"[{expected}]".encode("utf-8")


def test_utf8_character_split_at_sample_boundary(tmp_path):
    head = "name,city\na,"
    # the first byte of "é" is the last byte of the detection sample
    filler = "b" * (ENCODING_SAMPLE_BYTES - 1 - len(head) - 1)
    text = head + filler + "\n" + "é,Montréal\n"
    source = _csv(tmp_path, text)
    assert source.read_bytes()[ENCODING_SAMPLE_BYTES - 1 : ENCODING_SAMPLE_BYTES + 1] == "é".encode("utf-8")

    summary = convert_file(ConversionConfig(filepath=source))

    assert summary.encoding == "utf-8"
    records = json.loads((tmp_path / "data.json").read_text(encoding="utf-8"))
    assert records[-1] == {"name": "é", "city": "Montréal"}


def test_latin1_is_still_detected(tmp_path):
    source = _csv(tmp_path, "name,city\nPaul,Montréal\n", encoding="latin-1")

    summary = convert_file(ConversionConfig(filepath=source))

    assert summary.encoding != "utf-8"
    records = json.loads((tmp_path / "data.json").read_text(encoding="utf-8"))
    assert records == [{"name": "Paul", "city": "Montréal"}]


def test_fields_longer_than_csv_default_limit(tmp_path):
    big = "x" * 200000
    source = _csv(tmp_path, f"a,b\n{big},1\n")

    summary = convert_file(ConversionConfig(filepath=source))

    assert summary.records_written == 1
    records = json.loads((tmp_path / "data.json").read_text(encoding="utf-8"))
    assert records == [{"a": big, "b": "1"}]
