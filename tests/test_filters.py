import pytest

from linguaprep.domain.errors import InvalidFilter
from linguaprep.domain.filters import FilterField, PracticeQuery


def test_requires_at_least_one_filter():
    with pytest.raises(InvalidFilter):
        PracticeQuery.build(limit=10, max_limit=100)


def test_blank_values_do_not_count_as_filters():
    with pytest.raises(InvalidFilter):
        PracticeQuery.build(limit=10, max_limit=100, language="  ", module="")


def test_limit_bounds():
    with pytest.raises(InvalidFilter):
        PracticeQuery.build(limit=0, max_limit=100, language="japanese")
    with pytest.raises(InvalidFilter):
        PracticeQuery.build(limit=101, max_limit=100, language="japanese")


def test_clauses_are_typed_and_ordered():
    query = PracticeQuery.build(limit=5, max_limit=100, module="reading", language=" japanese ")
    assert [c.field for c in query.clauses] == [FilterField.LANGUAGE, FilterField.MODULE]
    assert query.as_dict() == {"language": "japanese", "module": "reading"}


def test_equal_queries_share_a_cache_key():
    a = PracticeQuery.build(limit=5, max_limit=100, difficulty="N5", language="japanese")
    b = PracticeQuery.build(limit=20, max_limit=100, language="japanese", difficulty="N5")
    assert a.cache_key() == b.cache_key() == "difficulty=N5|language=japanese"


def test_separator_characters_in_values_cannot_collide():
    split = PracticeQuery.build(limit=5, max_limit=100, language="a", module="b")
    joined = PracticeQuery.build(limit=5, max_limit=100, language="a|module=b")
    assert split.cache_key() != joined.cache_key()
    assert joined.cache_key() == "language=a%7Cmodule%3Db"


def test_glob_characters_are_encoded():
    query = PracticeQuery.build(limit=5, max_limit=100, section="part*[1]")
    assert "*" not in query.cache_key()
    assert "[" not in query.cache_key()
