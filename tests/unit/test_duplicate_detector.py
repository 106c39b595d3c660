"""
Unit tests for similarity scoring and duplicate detection.
"""

import pytest

from shelfscan.library.duplicates import (
    CatalogEntry,
    DuplicateDetector,
    DuplicateGroup,
    find_duplicates,
    is_duplicate,
)
from shelfscan.library.similarity import levenshtein_distance, normalized_similarity


class TestSimilarity:
    """Tests for edit-distance similarity."""

    def test_levenshtein_distance(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("same", "same") == 0

    def test_identical_strings(self):
        assert normalized_similarity("Dune", "Dune") == 1.0

    def test_empty_strings(self):
        assert normalized_similarity("", "") == 1.0
        assert normalized_similarity("Dune", "") == 0.0
        assert normalized_similarity("", "Dune") == 0.0

    def test_formula(self):
        assert normalized_similarity("kitten", "sitting") == pytest.approx(4 / 7)

    def test_case_insensitive(self):
        assert normalized_similarity("jane austen", "Jane Austen") == 1.0

    def test_surrounding_whitespace_ignored(self):
        assert normalized_similarity("Dune", "Dune ") == 1.0

    def test_unrelated_titles(self):
        assert normalized_similarity("Dune", "1984") < 0.5

    @pytest.mark.parametrize("a,b", [
        ("Dune", "Dune Messiah"),
        ("Pride and Prejudice", "Pride & Prejudice"),
        ("1984", "Animal Farm"),
        ("", "x"),
    ])
    def test_symmetric_and_bounded(self, a, b):
        forward = normalized_similarity(a, b)

        assert forward == normalized_similarity(b, a)
        assert 0.0 <= forward <= 1.0


class TestIsDuplicate:
    """Tests for pairwise duplicate decisions."""

    @pytest.fixture
    def detector(self):
        return DuplicateDetector()

    def test_same_isbn_short_circuits(self, detector):
        a = CatalogEntry(id="a", title="Dune", author="Frank Herbert", isbn="9780441172719")
        b = CatalogEntry(id="b", title="Completely Different", author="Someone Else", isbn="9780441172719")

        assert detector.is_duplicate(a, b)

    def test_empty_isbn_does_not_match(self, detector):
        a = CatalogEntry(id="a", title="Dune", author="Frank Herbert", isbn="")
        b = CatalogEntry(id="b", title="Emma", author="Jane Austen", isbn="")

        assert not detector.is_duplicate(a, b)

    def test_isbn_compared_as_stored(self, detector):
        """Hyphenated and bare forms are different stored identifiers."""
        a = CatalogEntry(id="a", title="Dune", author="Frank Herbert", isbn="978-0-441-17271-9")
        b = CatalogEntry(id="b", title="Emma", author="Jane Austen", isbn="9780441172719")

        assert not detector.is_duplicate(a, b)

    def test_similar_title_and_author(self, detector):
        a = CatalogEntry(id="a", title="Pride and Prejudice", author="Jane Austen")
        b = CatalogEntry(id="b", title="Pride & Prejudice", author="Jane Austen")

        assert detector.is_duplicate(a, b)

    def test_similar_title_different_author(self, detector):
        a = CatalogEntry(id="a", title="Collected Poems", author="W. B. Yeats")
        b = CatalogEntry(id="b", title="Collected Poems", author="Sylvia Plath")

        assert not detector.is_duplicate(a, b)

    def test_both_authors_missing(self, detector):
        a = CatalogEntry(id="a", title="Beowulf")
        b = CatalogEntry(id="b", title="Beowulf")

        assert detector.is_duplicate(a, b)

    def test_one_author_missing(self, detector):
        a = CatalogEntry(id="a", title="Beowulf", author="Seamus Heaney")
        b = CatalogEntry(id="b", title="Beowulf")

        assert not detector.is_duplicate(a, b)

    def test_threshold_is_strict(self, detector):
        """Similarity of exactly 0.8 is not enough."""
        a = CatalogEntry(id="a", title="abcdefghij", author="Author")
        b = CatalogEntry(id="b", title="abcdefghXY", author="Author")

        assert normalized_similarity(a.title, b.title) == pytest.approx(0.8)
        assert not detector.is_duplicate(a, b)

    def test_custom_threshold(self):
        detector = DuplicateDetector(similarity_threshold=0.5)
        a = CatalogEntry(id="a", title="abcdefghij", author="Author")
        b = CatalogEntry(id="b", title="abcdefghXY", author="Author")

        assert detector.is_duplicate(a, b)

    def test_module_level_helper(self):
        a = CatalogEntry(id="a", title="Dune", author="Frank Herbert")
        b = CatalogEntry(id="b", title="Dune ", author="frank herbert")

        assert is_duplicate(a, b)


class TestFindDuplicates:
    """Tests for catalog-wide grouping."""

    @pytest.fixture
    def detector(self):
        return DuplicateDetector()

    def test_sample_catalog(self, detector, sample_catalog):
        groups = detector.find_duplicates(sample_catalog)

        assert [g.ids for g in groups] == [["1", "3"], ["2", "5", "6"]]

    def test_isbn_grouping(self, detector):
        entries = [
            CatalogEntry(id="a", title="Alpha", author="One", isbn="1111111111"),
            CatalogEntry(id="b", title="Beta", author="Two", isbn="1111111111"),
            CatalogEntry(id="c", title="Gamma", author="Three", isbn="2222222222"),
        ]

        groups = detector.find_duplicates(entries)

        assert len(groups) == 1
        assert groups[0].ids == ["a", "b"]

    def test_not_transitive(self, detector):
        """Later entries are compared to the group's first entry only."""
        a = CatalogEntry(id="a", title="abcdefghij", author="Author")
        b = CatalogEntry(id="b", title="abcdefghiX", author="Author")
        c = CatalogEntry(id="c", title="abcdefghXX", author="Author")

        assert detector.is_duplicate(a, b)
        assert detector.is_duplicate(b, c)
        assert not detector.is_duplicate(a, c)

        assert [g.ids for g in detector.find_duplicates([a, b, c])] == [["a", "b"]]

    def test_order_dependent(self, detector):
        a = CatalogEntry(id="a", title="abcdefghij", author="Author")
        b = CatalogEntry(id="b", title="abcdefghiX", author="Author")
        c = CatalogEntry(id="c", title="abcdefghXX", author="Author")

        assert [g.ids for g in detector.find_duplicates([b, a, c])] == [["b", "a", "c"]]

    def test_groups_are_disjoint(self, detector, sample_catalog):
        groups = detector.find_duplicates(sample_catalog)
        ids = [entry_id for g in groups for entry_id in g.ids]

        assert len(ids) == len(set(ids))
        assert all(len(g) >= 2 for g in groups)

    def test_no_duplicates(self, detector):
        entries = [
            CatalogEntry(id="1", title="Dune", author="Frank Herbert"),
            CatalogEntry(id="2", title="Emma", author="Jane Austen"),
        ]

        assert detector.find_duplicates(entries) == []

    def test_empty_catalog(self, detector):
        assert detector.find_duplicates([]) == []

    def test_input_not_modified(self, detector, sample_catalog):
        snapshot = list(sample_catalog)

        detector.find_duplicates(sample_catalog)

        assert sample_catalog == snapshot

    def test_module_level_helper(self, sample_catalog):
        assert len(find_duplicates(sample_catalog)) == 2


class TestFindMatches:
    """Tests for the save-time duplicate check."""

    @pytest.fixture
    def detector(self):
        return DuplicateDetector()

    def test_new_entry_matches(self, detector, sample_catalog):
        candidate = CatalogEntry(id="new", title="Dune", author="Frank Herbert")

        matches = detector.find_matches(candidate, sample_catalog)

        assert [m.id for m in matches] == ["1", "3"]

    def test_own_id_skipped(self, detector, sample_catalog):
        """Re-saving an edited entry does not match itself."""
        candidate = CatalogEntry(id="4", title="1984", author="George Orwell")

        assert detector.find_matches(candidate, sample_catalog) == []

    def test_no_match(self, detector, sample_catalog):
        candidate = CatalogEntry(id="new", title="Middlemarch", author="George Eliot")

        assert detector.find_matches(candidate, sample_catalog) == []


class TestDuplicateGroup:
    """Tests for keep-one resolution."""

    @pytest.fixture
    def group(self):
        return DuplicateGroup(entries=[
            CatalogEntry(id="1", title="Dune"),
            CatalogEntry(id="2", title="Dune"),
            CatalogEntry(id="3", title="Dune"),
        ])

    def test_primary_is_first(self, group):
        assert group.primary.id == "1"

    def test_ids_to_remove(self, group):
        assert group.ids_to_remove("2") == ["1", "3"]

    def test_membership(self, group):
        assert "3" in group
        assert "9" not in group

    def test_keep_id_must_be_member(self, group):
        with pytest.raises(ValueError):
            group.ids_to_remove("9")
