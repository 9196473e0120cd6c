"""
tests/test_csv_sampler.py

Pytest unit tests for the bounded CSV sampler.

Coverage
--------
- Header trimming, BOM stripping, duplicate header suffixes
- Quoted fields with commas, doubled quotes and newlines
- Padding of short rows, dropping of extra fields, blank lines
- Row limit with early termination of the chunk stream
- Byte cap truncation discarding the trailing partial record
- Empty and header-less input
"""

from __future__ import annotations

from typing import Iterator

import pytest

from extraction.csv_sampler import sample_csv, sample_csv_bytes, unique_headers, zip_row


def _chunked(data: bytes, size: int) -> list[bytes]:
    return [data[i : i + size] for i in range(0, len(data), size)]


class TestHeaders:
    def test_headers_are_trimmed(self) -> None:
        sample = sample_csv_bytes(b" Area , Value \nBrazil,1\n")
        assert sample.headers == ("Area", "Value")

    def test_bom_is_stripped(self) -> None:
        sample = sample_csv_bytes("\ufeffCountry,Value\nBrazil,1\n".encode("utf-8"))
        assert sample.headers[0] == "Country"

    def test_duplicate_headers_get_suffixes(self) -> None:
        assert unique_headers(["Value", "Area", "Value", "Value"]) == ("Value", "Area", "Value.1", "Value.2")

    def test_leading_blank_lines_before_header_are_skipped(self) -> None:
        sample = sample_csv_bytes(b"\n\nCountry\nBrazil\n")
        assert sample.headers == ("Country",)
        assert sample.rows == [{"Country": "Brazil"}]

    @pytest.mark.parametrize("payload", [b"", b"\n\n", b"   \n"])
    def test_no_header_yields_empty_sample(self, payload: bytes) -> None:
        sample = sample_csv_bytes(payload)
        assert sample.headers == ()
        assert sample.rows == []


class TestQuoting:
    def test_quoted_comma_stays_in_one_field(self) -> None:
        # A naive split on "," would shift every later column.
        sample = sample_csv_bytes(b'Area,Item,Value\n"Korea, Republic of",Rice,42\n')
        assert sample.rows == [{"Area": "Korea, Republic of", "Item": "Rice", "Value": "42"}]

    def test_doubled_quotes_are_unescaped(self) -> None:
        sample = sample_csv_bytes(b'Name,Note\nA,"say ""hi"""\n')
        assert sample.rows[0]["Note"] == 'say "hi"'

    def test_embedded_newline_in_quoted_field(self) -> None:
        sample = sample_csv_bytes(b'Name,Note\nA,"line one\nline two"\nB,plain\n')
        assert [row["Name"] for row in sample.rows] == ["A", "B"]
        assert sample.rows[0]["Note"] == "line one\nline two"

    def test_chunk_boundaries_do_not_matter(self) -> None:
        data = 'Area,Value\n"Côte d\'Ivoire, Rep.",1\nGhana,2\n'.encode("utf-8")
        whole = sample_csv([data])
        split = sample_csv(_chunked(data, 3))
        assert split.rows == whole.rows
        assert split.rows[0]["Area"] == "Côte d'Ivoire, Rep."


class TestRowShape:
    def test_field_count_equals_header_count(self) -> None:
        sample = sample_csv_bytes(b"A,B,C\n1\n1,2,3,4,5\n1,2\n")
        for row in sample.rows:
            assert list(row) == ["A", "B", "C"]

    def test_missing_fields_are_empty_strings(self) -> None:
        assert zip_row(("A", "B", "C"), ["1"]) == {"A": "1", "B": "", "C": ""}

    def test_extra_fields_are_dropped(self) -> None:
        assert zip_row(("A",), ["1", "2"]) == {"A": "1"}

    def test_values_are_trimmed(self) -> None:
        sample = sample_csv_bytes(b"A,B\n  x  ,  y\n")
        assert sample.rows == [{"A": "x", "B": "y"}]

    def test_blank_lines_are_skipped(self) -> None:
        sample = sample_csv_bytes(b"A\n1\n\n   \n2\n")
        assert [row["A"] for row in sample.rows] == ["1", "2"]

    def test_crlf_line_endings(self) -> None:
        sample = sample_csv_bytes(b"A,B\r\n1,2\r\n3,4\r\n")
        assert sample.rows == [{"A": "1", "B": "2"}, {"A": "3", "B": "4"}]

    def test_invalid_utf8_is_replaced(self) -> None:
        sample = sample_csv_bytes(b"A\nS\xe3o Paulo\n")
        assert sample.rows[0]["A"].startswith("S")
        assert "\ufffd" in sample.rows[0]["A"]


class TestLimits:
    def test_row_limit_caps_rows(self) -> None:
        data = b"A\n" + b"".join(f"{i}\n".encode() for i in range(500))
        sample = sample_csv_bytes(data, row_limit=200)
        assert len(sample.rows) == 200
        assert sample.rows[-1]["A"] == "199"

    def test_row_limit_stops_pulling_chunks(self) -> None:
        pulled: list[int] = []

        def chunks() -> Iterator[bytes]:
            yield b"A\n"
            for i in range(10_000):
                pulled.append(i)
                yield f"{i}\n".encode()

        sample = sample_csv(chunks(), row_limit=5)
        assert len(sample.rows) == 5
        assert len(pulled) < 20

    def test_byte_cap_drops_partial_trailing_record(self) -> None:
        data = b"Country,Value\nBrazil,10\nArgentina,20\nUruguay,30\n"
        cap = data.index(b"Uruguay") + 4
        sample = sample_csv_bytes(data, max_bytes=cap)
        assert sample.truncated is True
        assert [row["Country"] for row in sample.rows] == ["Brazil", "Argentina"]
        assert sample.bytes_read == cap

    def test_byte_cap_on_line_boundary_keeps_complete_rows(self) -> None:
        data = b"Country\nBrazil\nArgentina\nUruguay\n"
        cap = data.index(b"Uruguay")
        sample = sample_csv_bytes(data, max_bytes=cap)
        assert [row["Country"] for row in sample.rows] == ["Brazil", "Argentina"]

    def test_untruncated_stream_reports_bytes_read(self) -> None:
        data = b"A\n1\n2\n"
        sample = sample_csv_bytes(data)
        assert sample.truncated is False
        assert sample.bytes_read == len(data)

    def test_last_line_without_newline_is_kept(self) -> None:
        sample = sample_csv_bytes(b"A\n1\n2")
        assert [row["A"] for row in sample.rows] == ["1", "2"]

    def test_byte_cap_inside_quoted_field_drops_that_record(self) -> None:
        data = b'A,B\n1,"multi\nline"\n2,x\n'
        cap = data.index(b'line"')
        sample = sample_csv_bytes(data, max_bytes=cap)
        assert sample.truncated is True
        assert sample.rows == []

    def test_stray_quote_in_unquoted_field_keeps_following_rows(self) -> None:
        data = b'Item,Desc\nA,5" pipe\nB,ok\nC,partial text\n'
        cap = data.index(b"partial")
        sample = sample_csv_bytes(data, max_bytes=cap)
        assert sample.truncated is True
        assert [row["Item"] for row in sample.rows] == ["A", "B"]
        assert sample.rows[0]["Desc"] == '5" pipe'

    def test_oversized_header_line_yields_empty_sample(self) -> None:
        sample = sample_csv_bytes(b"x" * 200_000 + b"\nBrazil\n", max_bytes=400_000)
        assert sample.headers == ()
        assert sample.rows == []
        assert sample.truncated is True

    def test_byte_cap_before_first_newline_yields_empty_sample(self) -> None:
        sample = sample_csv_bytes(b"Country,Value\nBrazil,10\n", max_bytes=5)
        assert sample.headers == ()
        assert sample.truncated is True
