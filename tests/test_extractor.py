"""
Tests for the extraction pipeline and the extract command
"""

import pytest

from twx_core.collector import EditBatch
from twx_core.config import TransformConfig
from twx_core.errors import ParseFailure
from twx_core.extractor import (
    FAILURE_PREFIX,
    ClassExtractor,
    extract_classes,
    resolve_selection,
    run_extract_command,
    transform_text,
)
from twx_core.host import MemoryHost

from conftest import IMPORT_LINE


CARD_EXPECTED = (
    IMPORT_LINE + "\n"
    'export function Card({ title }: { title: string }) {\n'
    '  return (\n'
    '    <div className={twJoin(\n'
    '        "p-4 text-center",\n'
    '        "sm:p-8"\n'
    '      )}>\n'
    '      <h2 className="font-bold">{title}</h2>\n'
    '    </div>\n'
    '  );\n'
    '}\n'
)


class RejectingHost(MemoryHost):
    """Host that refuses every edit batch."""

    def apply_edits_atomically(self, document_id, batch):
        return False


class RaisingHost(MemoryHost):
    """Host whose edit application blows up."""

    def apply_edits_atomically(self, document_id, batch):
        raise RuntimeError("host went away")


# ========== Selection Tests ==========

class TestResolveSelection:
    def test_no_selection(self):
        assert resolve_selection("abc", None) == ("abc", 0)

    def test_empty_selection_is_whole_document(self):
        assert resolve_selection("abcdef", (3, 3)) == ("abcdef", 0)

    def test_range(self):
        assert resolve_selection("abcdef", (1, 4)) == ("bcd", 1)

    @pytest.mark.parametrize("selection", [(-1, 2), (2, 10), (4, 2)])
    def test_out_of_range(self, selection):
        with pytest.raises(ValueError):
            resolve_selection("abcdef", selection)


# ========== Pipeline Tests ==========

class TestTransformText:
    def test_card_component(self, card_source):
        assert transform_text(card_source, filename="Card.tsx") == CARD_EXPECTED

    def test_second_pass_is_empty(self, card_source):
        once = transform_text(card_source, filename="Card.tsx")
        batch = extract_classes(once, filename="Card.tsx")
        assert len(batch) == 0
        assert transform_text(once, filename="Card.tsx") == once

    def test_no_candidates(self):
        code = 'export const A = () => <p className="text-sm font-bold">a</p>;\n'
        batch = extract_classes(code)
        assert not batch
        assert not batch.import_added
        assert transform_text(code) == code

    def test_existing_import_is_kept_single(self):
        code = IMPORT_LINE + '\nexport const A = () => <p className="a md:b" />;\n'
        result = transform_text(code)
        assert result.count(IMPORT_LINE) == 1
        assert result.startswith(IMPORT_LINE + "\n")
        assert '"md:b"' in result

    def test_braced_call_without_base(self):
        code = 'const A = () => <nav className={twJoin("mobile:hidden desktop:flex")} />;\n'
        result = transform_text(code, filename="Nav.tsx")
        assert result == (
            IMPORT_LINE + "\n"
            "const A = () => <nav className={twJoin(\n"
            '        "mobile:hidden",\n'
            '        "desktop:flex"\n'
            "      )} />;\n"
        )

    def test_mixed_shapes(self):
        code = (
            "const A = ({ on }) => (\n"
            '  <ul className="list sm:grid">\n'
            '    <li className={"p-1 lg:p-2"} />\n'
            '    <li className={twJoin("m-1", "xl:m-2")} />\n'
            "    <li className={on ? \"x sm:y\" : \"z\"} />\n"
            "    <li className={`a md:b`} />\n"
            "  </ul>\n"
            ");\n"
        )
        batch = extract_classes(code, filename="List.jsx")
        assert len(batch.replacements) == 3
        assert [e.span.slice(code) for e in batch.replacements] == [
            '"list sm:grid"',
            '{"p-1 lg:p-2"}',
            '{twJoin("m-1", "xl:m-2")}',
        ]
        result = transform_text(code, filename="List.jsx")
        assert '{on ? "x sm:y" : "z"}' in result
        assert "{`a md:b`}" in result

    def test_crlf_document(self):
        code = 'const A = () => <b className="a sm:b" />;\r\n'
        result = transform_text(code)
        assert result.startswith(IMPORT_LINE + "\r\n")
        assert "\n" not in result.replace("\r\n", "")
        assert len(extract_classes(result)) == 0

    def test_surrogate_pair_escape(self):
        code = 'const A = () => <b className={"\\uD83D\\uDE00 sm:p-2"} />;\n'
        result = transform_text(code)
        assert '"\U0001F600",\n' in result
        result.encode("utf-8")

    def test_unpaired_surrogate_escape(self):
        code = 'const A = () => <b className={"\\uD83D sm:p-2"} />;\n'
        result = transform_text(code)
        assert '"\\uD83D",\n' in result
        result.encode("utf-8")

    def test_comments_in_join_call_are_kept(self):
        code = 'const A = () => <b className={twJoin("p-4", /* keep */ "sm:p-2")} />;\n'
        assert transform_text(code) == code

    def test_non_ascii_offsets(self):
        code = 'const t = "ünïcödé";\nconst A = () => <b className="é sm:b" />;\n'
        batch = extract_classes(code)
        assert batch.replacements[0].span.slice(code) == '"é sm:b"'
        assert '"é",\n' in transform_text(code)

    def test_custom_configuration(self):
        config = TransformConfig(
            attribute_name="tw",
            join_function="cn",
            merge_library="@/lib/utils",
            prefixes=["hover:"],
            arg_indent=2,
            close_indent=0,
        )
        code = '<a tw="underline hover:no-underline sm:p-1" className="x hover:y" />;\n'
        result = transform_text(code, config=config)
        assert result == (
            'import { cn } from "@/lib/utils";\n'
            '<a tw={cn(\n'
            '  "underline sm:p-1",\n'
            '  "hover:no-underline"\n'
            ')} className="x hover:y" />;\n'
        )


class TestSelection:
    def test_selection_offsets_are_document_absolute(self, card_source):
        start = card_source.index("<div")
        end = card_source.index("</div>") + len("</div>")
        batch = extract_classes(card_source, selection=(start, end), filename="Card.tsx")
        assert batch.replacements[0].span.slice(card_source) == '"p-4 sm:p-8 text-center"'
        assert transform_text(card_source, (start, end), filename="Card.tsx") == CARD_EXPECTED

    def test_attributes_outside_selection_are_ignored(self):
        first = '<a className="a sm:b" />;\n'
        second = '<b className="c md:d" />;\n'
        code = first + second
        batch = extract_classes(code, selection=(len(first), len(code)))
        assert [e.span.slice(code) for e in batch.replacements] == ['"c md:d"']

    def test_import_outside_selection_counts(self):
        code = IMPORT_LINE + '\n<b className="c md:d" />;\n'
        batch = extract_classes(code, selection=(len(IMPORT_LINE) + 1, len(code)))
        assert len(batch) == 1
        assert not batch.import_added

    def test_scan_shifts_spans(self):
        code = 'const x = 1;\n<b className="c md:d" />;\n'
        start = code.index("<b")
        (candidate,) = ClassExtractor().scan(code, (start, len(code)))
        assert candidate.span.slice(code) == '"c md:d"'


class TestStrictParsing:
    BROKEN = '<div className="p-1 sm:p-2"\n'

    def test_strict_raises(self):
        with pytest.raises(ParseFailure):
            extract_classes(self.BROKEN, config=TransformConfig(strict_parse=True))

    def test_recovery_does_not_raise(self):
        assert isinstance(extract_classes(self.BROKEN), EditBatch)

    def test_env_enables_strict(self, monkeypatch):
        monkeypatch.setenv("TWX_STRICT_PARSE", "1")
        with pytest.raises(ParseFailure):
            ClassExtractor().extract(self.BROKEN)


# ========== Command Tests ==========

class TestRunExtractCommand:
    def test_applies_batch(self, card_source):
        host = MemoryHost(card_source, document_id="Card.tsx")
        batch = run_extract_command(host)
        assert len(batch.replacements) == 1
        assert host.text == CARD_EXPECTED
        assert host.applied == [batch]
        assert host.failures == []

    def test_no_active_document(self):
        host = MemoryHost(None)
        assert run_extract_command(host) is None
        assert host.failures == []
        assert host.applied == []

    def test_nothing_to_change_is_not_applied(self):
        host = MemoryHost('<p className="flex" />;\n')
        batch = run_extract_command(host)
        assert batch is not None
        assert len(batch) == 0
        assert host.applied == []
        assert host.failures == []

    def test_parse_failure_is_reported_once(self):
        text = '<div className="p-1 sm:p-2"\n'
        host = MemoryHost(text)
        assert run_extract_command(host, TransformConfig(strict_parse=True)) is None
        assert len(host.failures) == 1
        assert host.failures[0].startswith(FAILURE_PREFIX)
        assert host.text == text

    def test_bad_selection_is_reported(self):
        host = MemoryHost("<a />;", selection=(0, 100))
        assert run_extract_command(host) is None
        assert len(host.failures) == 1
        assert host.failures[0].startswith(FAILURE_PREFIX)

    def test_rejected_batch_is_reported(self, card_source):
        host = RejectingHost(card_source)
        assert run_extract_command(host) is None
        assert len(host.failures) == 1
        assert host.failures[0].startswith(FAILURE_PREFIX)
        assert host.text == card_source

    def test_applier_exception_is_reported(self, card_source):
        host = RaisingHost(card_source)
        assert run_extract_command(host) is None
        assert host.failures == [f"{FAILURE_PREFIX}host went away"]
        assert host.text == card_source

    def test_selection_from_host(self):
        first = '<a className="a sm:b" />;\n'
        code = first + '<b className="c md:d" />;\n'
        host = MemoryHost(code, selection=(len(first), len(code)))
        run_extract_command(host)
        assert 'className="a sm:b"' in host.text
        assert 'className="c md:d"' not in host.text
