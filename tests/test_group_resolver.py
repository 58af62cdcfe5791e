import pytest

from TabShepherd.group_resolver import (MatchPolicy, PriorityOrderResolver,
                                        TitlePriorityResolver, create_resolver,
                                        resolve_group)
from TabShepherd.models import MatchType


class TestPriorityOrderResolver:

    @pytest.fixture
    def resolver(self):
        return PriorityOrderResolver()

    def test_first_group_by_priority_wins(self, resolver, make_config):
        config = make_config(
            ("3004", ["3004"], "simple", 1),
            ("Development", ["localhost"], "simple", 0),
        )
        group = resolver.resolve("http://localhost:3004/app", "", config)
        assert group.name == "Development"

    def test_title_is_not_considered(self, resolver, make_config):
        config = make_config(("3003", ["3003"]))
        assert resolver.resolve("http://example.com", "Feature branch - 3003", config) is None

    def test_equal_priorities_keep_insertion_order(self, resolver, make_config):
        config = make_config(("First", ["foo"], "simple", 0), ("Second", ["foo"], "simple", 0))
        assert resolver.resolve("http://foo.example", "", config).name == "First"

    def test_uses_group_mode(self, resolver, make_config):
        config = make_config(("Ports", ["localhost:300[0-2]"], "regex"))
        match = resolver.resolve_match("http://localhost:3002", "", config)
        assert match.group.name == "Ports"
        assert match.match_type == MatchType.URL


class TestTitlePriorityResolver:

    @pytest.fixture
    def resolver(self):
        return TitlePriorityResolver()

    def test_title_match_beats_url_match_regardless_of_priority(self, resolver, make_config):
        config = make_config(
            ("UrlGroup", ["example.com"], "simple", 0),
            ("TitleGroup", ["standup"], "simple", 5),
        )
        match = resolver.resolve_match("http://example.com/doc", "Daily standup notes", config)
        assert match.group.name == "TitleGroup"
        assert match.match_type == MatchType.TITLE

    def test_ties_break_alphabetically(self, resolver, make_config):
        config = make_config(
            ("Zeta", ["foo"], "simple", 0),
            ("Alpha", ["foo"], "simple", 1),
        )
        assert resolver.resolve("http://foo.example", "", config).name == "Alpha"

    def test_url_match_when_no_title_match(self, resolver, make_config):
        config = make_config(("GitHub", ["github.com"]))
        match = resolver.resolve_match("https://github.com/x", "Pull request", config)
        assert match.match_type == MatchType.URL

    def test_no_match(self, resolver, make_config):
        config = make_config(("GitHub", ["github.com"]))
        assert resolver.resolve("https://gitlab.com", "Merge request", config) is None


@pytest.mark.parametrize("policy", list(MatchPolicy))
def test_disabled_config_short_circuits(policy, make_config):
    config = make_config(("Any", ["foo"]), enabled=False)
    assert create_resolver(policy).resolve("http://foo", "foo", config) is None


def test_policies_differ_on_overlapping_patterns(make_config):
    config = make_config(
        ("Docs", ["docs.example.com"], "simple", 0),
        ("Budget", ["budget"], "simple", 1),
    )
    url, title = "https://docs.example.com/d/1", "Budget 2026"
    assert resolve_group(url, title, config, MatchPolicy.PRIORITY_ORDER).name == "Docs"
    assert resolve_group(url, title, config, "title_priority").name == "Budget"


def test_create_resolver_rejects_unknown_policy():
    with pytest.raises(ValueError):
        create_resolver("newest_first")
