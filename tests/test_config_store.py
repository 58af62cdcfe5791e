import json

import pytest

from TabShepherd.config_store import (export_config, import_config, parse_groups,
                                      renumber_priorities)
from TabShepherd.errors import ConfigValidationError
from TabShepherd.models import Config, Group, MatchMode
from TabShepherd.storage import CONFIG_KEY


def test_renumber_priorities_keeps_rank_and_ties():
    groups = [Group("a", ["a"], priority=5), Group("b", ["b"], priority=2), Group("c", ["c"], priority=5)]
    ordered = renumber_priorities(groups)
    assert [g.name for g in ordered] == ["b", "a", "c"]
    assert [(g.name, g.priority) for g in groups] == [("a", 1), ("b", 0), ("c", 2)]


class TestParseGroups:

    def test_missing_priority_defaults_to_position(self):
        groups = parse_groups([
            {'name': 'A', 'patterns': ['a']},
            {'name': 'B', 'patterns': ['b'], 'priority': -1, 'mode': 'regex'},
        ])
        assert [(g.name, g.priority) for g in groups] == [("A", 1), ("B", 0)]
        assert groups[1].mode == MatchMode.REGEX

    @pytest.mark.parametrize("raw, message", [
        (None, "missing groups array"),
        ([{'name': 'A'}], "group missing name or patterns"),
        ([{'patterns': ['a']}], "group missing name or patterns"),
        ([{'name': 'A', 'patterns': ['a']}, {'name': 'A', 'patterns': ['b']}], "duplicate group name 'A'"),
        ([{'name': 'A', 'patterns': ['a'], 'mode': 'glob'}], "invalid mode 'glob'"),
        ([{'name': 'A', 'patterns': ['a'], 'priority': 'high'}], "priority must be a number"),
        (["A"], "must be a dictionary"),
    ])
    def test_invalid_groups(self, raw, message):
        with pytest.raises(ConfigValidationError) as excinfo:
            parse_groups(raw)
        assert message in str(excinfo.value)


class TestImportExport:

    def test_round_trip(self, make_config):
        config = make_config(("3003", ["localhost:3003"]), ("Dev", ["localhost:300[0-2]"], "regex"),
                             catch_all_window_id=42)
        restored = import_config(export_config(config))
        assert restored == config

    def test_export_is_indented_json(self, make_config):
        text = export_config(make_config(("A", ["a"])))
        assert text.startswith('{\n  "enabled": true')
        assert json.loads(text)['groups'][0] == {'name': 'A', 'patterns': ['a'], 'priority': 0, 'mode': 'simple'}

    def test_import_accepts_yaml(self):
        config = import_config("groups:\n  - name: A\n    patterns: [a]\n")
        assert config.enabled
        assert config.groups[0].name == "A"

    @pytest.mark.parametrize("text, message", [
        ("{not json", "Invalid config"),
        ("[1, 2]", "expected an object"),
        ('{"enabled": true}', "missing groups array"),
        ('{"groups": [{"name": "A"}]}', "group missing name or patterns"),
        ('{"groups": [], "catchAllWindowId": "abc"}', "catchAllWindowId"),
    ])
    def test_invalid_imports(self, text, message):
        with pytest.raises(ConfigValidationError) as excinfo:
            import_config(text)
        assert message in str(excinfo.value)


class TestConfigStore:

    @pytest.mark.asyncio
    async def test_default_config_when_nothing_stored(self, config_store):
        config = await config_store.get()
        assert config == Config(enabled=True, groups=[], catch_all_window_id=None)

    @pytest.mark.asyncio
    async def test_failed_import_keeps_stored_config(self, config_store, make_config):
        original = make_config(("A", ["a"]))
        await config_store.save(original)

        with pytest.raises(ConfigValidationError):
            await config_store.import_text('{"groups": "nope"}')

        assert await config_store.get() == original

    @pytest.mark.asyncio
    async def test_import_replaces_config(self, config_store, sync_storage, make_config):
        await config_store.save(make_config(("A", ["a"])))
        await config_store.import_text('{"enabled": false, "groups": [{"name": "B", "patterns": ["b"]}]}')

        stored = await sync_storage.get(CONFIG_KEY)
        assert stored['enabled'] is False
        assert [g['name'] for g in stored['groups']] == ["B"]

    @pytest.mark.asyncio
    async def test_add_group(self, config_store):
        await config_store.add_group("A", ["a", "  ", " a2 "])
        group = await config_store.add_group("B", ["b"], "regex")

        config = await config_store.get()
        assert [(g.name, g.priority) for g in config.groups] == [("A", 0), ("B", 1)]
        assert config.groups[0].patterns == ["a", "a2"]
        assert group.mode == MatchMode.REGEX

    @pytest.mark.parametrize("name, patterns, mode, message", [
        ("", ["a"], "simple", "Please enter a group name"),
        ("B", ["", " "], "simple", "Please enter at least one pattern"),
        ("A", ["x"], "simple", "A group with this name already exists"),
        ("C", ["(bad"], "regex", "Invalid regex: (bad"),
    ])
    @pytest.mark.asyncio
    async def test_add_group_validation(self, config_store, name, patterns, mode, message):
        await config_store.add_group("A", ["a"])
        with pytest.raises(ConfigValidationError) as excinfo:
            await config_store.add_group(name, patterns, mode)
        assert str(excinfo.value) == message

    @pytest.mark.asyncio
    async def test_rename_group_carries_binding(self, config_store, bindings):
        await config_store.add_group("A", ["a"])
        await bindings.bind(100, "A")

        await config_store.update_group("A", "Alpha", ["a"])

        assert (await config_store.get()).groups[0].name == "Alpha"
        assert await bindings.get() == {100: "Alpha"}

    @pytest.mark.asyncio
    async def test_update_unknown_group(self, config_store):
        with pytest.raises(ConfigValidationError):
            await config_store.update_group("Missing", "X", ["x"])

    @pytest.mark.asyncio
    async def test_delete_group_unbinds_and_renumbers(self, config_store, bindings):
        for name in ("A", "B", "C"):
            await config_store.add_group(name, [name.lower()])
        await bindings.bind(100, "B")

        config = await config_store.delete_group("B")

        assert [(g.name, g.priority) for g in config.groups] == [("A", 0), ("C", 1)]
        assert await bindings.get() == {}

    @pytest.mark.asyncio
    async def test_swap_priority(self, config_store):
        for name in ("A", "B", "C"):
            await config_store.add_group(name, [name.lower()])

        config = await config_store.swap_priority("C", "A")

        assert [g.name for g in config.groups_by_priority()] == ["C", "B", "A"]

    @pytest.mark.asyncio
    async def test_toggle_and_catch_all(self, config_store):
        await config_store.set_enabled(False)
        await config_store.set_catch_all_window(300)
        config = await config_store.get()
        assert config.enabled is False
        assert config.catch_all_window_id == 300


@pytest.mark.asyncio
async def test_save_dict_rejects_malformed_record(config_store, make_config):
    original = make_config(("A", ["a"]))
    await config_store.save(original)

    with pytest.raises(ConfigValidationError) as excinfo:
        await config_store.save_dict({'groups': [{'name': 'A', 'patterns': ['a']}, {'name': 'A', 'patterns': ['b']}]})

    assert "duplicate group name 'A'" in str(excinfo.value)
    assert await config_store.get() == original
