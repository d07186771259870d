import json

import pytest

from typedump.normalize import normalize_record
from typedump.pipeline import RunConfig, run

RECORDS = [
    {"id": 1, "intrinsicName": "any", "recursionId": 0, "flags": ["Any"]},
    {"id": 2, "symbolName": "Foo", "flags": ["Object"], "unionTypes": [1, 3]},
    {"id": 3, "symbolName": "__type", "flags": ["Object"], "display": "{ a: any; }"},
    {"id": 4, "flags": ["StringLiteral"], "display": '"x"'},
]


def fixed_clock(*ticks):
    it = iter(ticks)
    return lambda: next(it)


def test_line_mode_round_trip(tmp_path, write_dump, read_output, dump_lines, reporter):
    src = write_dump("types.json", dump_lines(*RECORDS))
    dst = str(tmp_path / "out.json")

    summary = run(RunConfig(src, dst), reporter, clock=fixed_clock(10.0, 10.25))

    assert summary.ok
    assert summary.items == 4
    assert summary.elapsed_ms == 250
    out = json.loads(read_output(dst))
    assert out == [normalize_record(r) for r in RECORDS]
    assert [r["kind"] for r in out] == ["Intrinsic", "AliasedUnion", "AnonymousType", "StringLiteral"]
    assert reporter.lines == ["Processing...", "Done", "Processed 4 items in 250 ms"]


def test_output_keeps_canonical_field_order(tmp_path, write_dump, read_output, dump_lines, reporter):
    src = write_dump("types.json", dump_lines({"flags": ["Object"], "unionTypes": [2, 3], "symbolName": "Foo", "id": 1}))
    dst = str(tmp_path / "out.json")
    run(RunConfig(src, dst), reporter)
    assert read_output(dst) == '[{"id":1,"kind":"AliasedUnion","name":"Foo","count":2,"types":[2,3]}]'


@pytest.mark.parametrize(
    "src_name,dst_name",
    [("types.json.gz", "out.json.br"), ("types.json.br", "out.json.gz"), ("types.json.gz", "out.json")],
)
def test_compressed_round_trip(tmp_path, write_dump, read_output, dump_lines, reporter, src_name, dst_name):
    src = write_dump(src_name, dump_lines(*RECORDS))
    dst = str(tmp_path / dst_name)
    summary = run(RunConfig(src, dst), reporter)
    assert summary.ok
    assert len(json.loads(read_output(dst))) == len(RECORDS)


def test_array_mode_truncated_input(tmp_path, write_dump, read_output, reporter):
    text = json.dumps(RECORDS, indent=2)
    src = write_dump("types.json", text[: text.index('"id": 4')])
    dst = str(tmp_path / "out.json")

    summary = run(RunConfig(src, dst, multiline=True), reporter)

    assert summary.ok
    assert summary.items == 3
    assert len(reporter.parse_errors) == 1
    assert [r["id"] for r in json.loads(read_output(dst))] == [1, 2, 3]


def test_line_mode_parse_error_keeps_earlier_records(tmp_path, write_dump, read_output, reporter):
    src = write_dump("types.json", '[{"id":1},\n{"id":2},\n{"id":3,\n')
    dst = str(tmp_path / "out.json")

    summary = run(RunConfig(src, dst), reporter)

    assert summary.ok
    assert summary.items == 2
    assert reporter.dropped == ['{"id":3']
    assert json.loads(read_output(dst)) == [{"id": 1, "kind": "Other"}, {"id": 2, "kind": "Other"}]


def test_empty_input_writes_empty_array(tmp_path, write_dump, read_output, reporter):
    src = write_dump("types.json", "")
    dst = str(tmp_path / "out.json")
    summary = run(RunConfig(src, dst), reporter)
    assert summary.items == 0
    assert read_output(dst) == "[]"


def test_missing_input_reports_error(tmp_path, reporter):
    summary = run(RunConfig(str(tmp_path / "missing.json"), str(tmp_path / "out.json")), reporter)
    assert not summary.ok
    assert summary.items == 0
    assert reporter.lines[0] == "Processing..."
    assert reporter.lines[1].startswith("Error: cannot open input")
    assert reporter.lines[2].startswith("Processed 0 items in ")


def test_same_input_and_output_is_rejected(write_dump, reporter):
    src = write_dump("types.json", '{"id":1}\n')
    summary = run(RunConfig(src, src), reporter)
    assert not summary.ok
    assert "same file" in summary.error
    with open(src) as fh:
        assert fh.read() == '{"id":1}\n'


def test_record_without_id_stops_run_with_partial_output(tmp_path, write_dump, read_output, reporter):
    src = write_dump("types.json", '{"id":1}\n{"symbolName":"x"}\n{"id":3}\n')
    dst = str(tmp_path / "out.json")

    summary = run(RunConfig(src, dst), reporter)

    assert not summary.ok
    assert summary.items == 2
    assert read_output(dst) == '[{"id":1,"kind":"Other"}'
    assert reporter.lines[-1].startswith("Processed 2 items in ")


def test_line_mode_dump_cut_inside_utf8_character(tmp_path, read_output, reporter):
    src = tmp_path / "types.json"
    src.write_bytes('[{"id":1},\n{"id":2,"display":"é'.encode("utf-8")[:-1])
    dst = str(tmp_path / "out.json")

    summary = run(RunConfig(str(src), dst), reporter)

    assert summary.ok
    assert summary.items == 1
    assert len(reporter.parse_errors) == 1
    assert len(reporter.dropped) == 1
    assert json.loads(read_output(dst)) == [{"id": 1, "kind": "Other"}]


def test_unexpected_record_shape_still_reports_summary(tmp_path, write_dump, read_output, reporter):
    src = write_dump("types.json", '{"id":1}\n{"id":2,"firstDeclaration":"src/a.ts"}\n')
    dst = str(tmp_path / "out.json")

    summary = run(RunConfig(src, dst), reporter)

    assert not summary.ok
    assert summary.items == 2
    assert read_output(dst) == '[{"id":1,"kind":"Other"}'
    assert reporter.lines[-2].startswith("Error: ")
    assert reporter.lines[-1].startswith("Processed 2 items in ")
