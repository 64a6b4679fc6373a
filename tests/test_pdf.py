import pytest

from fuelbill.domain.errors import MergeEmptyInput, MergeSourceUnreadable
from fuelbill.infrastructure.pdf import count_pages, merge_documents


class TestMergeDocuments:
    """Test merge_documents concatenates pages in input order."""

    def test_page_order_preserved(self, make_pdf, page_texts):
        a = make_pdf("A1")
        b = make_pdf("B1", "B2")
        c = make_pdf("C1")

        merged = merge_documents([a, b, c])

        assert page_texts(merged) == ["A1", "B1", "B2", "C1"]

    def test_single_document(self, make_pdf, page_texts):
        merged = merge_documents([make_pdf("Only")])
        assert page_texts(merged) == ["Only"]

    def test_associative_over_concatenation(self, make_pdf, page_texts):
        a = make_pdf("A1", "A2")
        b = make_pdf("B1")
        c = make_pdf("C1", "C2")

        all_at_once = merge_documents([a, b, c])
        stepwise = merge_documents([merge_documents([a, b]), c])

        assert page_texts(all_at_once) == page_texts(stepwise)
        assert count_pages(all_at_once) == 5

    def test_inputs_unchanged(self, make_pdf):
        a = make_pdf("A1")
        copy = bytes(a)
        merge_documents([a, a])
        assert a == copy

    def test_empty_input(self):
        with pytest.raises(MergeEmptyInput):
            merge_documents([])

    def test_unreadable_source_named_by_index(self, make_pdf, page_texts):
        good_a = make_pdf("A1")
        good_c = make_pdf("C1")

        with pytest.raises(MergeSourceUnreadable) as excinfo:
            merge_documents([good_a, b"definitely not a pdf", good_c])
        assert excinfo.value.index == 1

        # Retrying without the bad document works
        assert page_texts(merge_documents([good_a, good_c])) == ["A1", "C1"]

    def test_empty_bytes_unreadable(self, make_pdf):
        with pytest.raises(MergeSourceUnreadable) as excinfo:
            merge_documents([b"", make_pdf("B1")])
        assert excinfo.value.index == 0
