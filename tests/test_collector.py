"""Tests for script/style collection, URL resolution and asset remapping."""

from unittest.mock import MagicMock

import pytest
from asset_bundles.collector import FileCollector
from asset_bundles.collector import FileEntry
from asset_bundles.collector import is_relative_url
from asset_bundles.collector import map_asset
from asset_bundles.exceptions import AssetNotFoundError
from asset_bundles.exceptions import BundleNotFoundError
from asset_bundles.exceptions import InvalidFileEntryError
from asset_bundles.exceptions import MissingConfigurationError
from asset_bundles.loader import BundleFactoryRegistry
from asset_bundles.paths import AliasPathResolver
from asset_bundles.resolver import DependencyResolver
from asset_bundles.resolver import RegistrationSession
from asset_bundles.schema import BundleDefinition
from asset_bundles.store import BundleStore


@pytest.fixture
def web_root(tmp_path):
    """Published-looking directory tree with a few assets."""
    for rel in ("jquery/jquery.js", "app/app.js", "app/extra.js", "app/app.css", "foo/bar.js"):
        asset = tmp_path / rel
        asset.parent.mkdir(parents=True, exist_ok=True)
        asset.write_text("")
    return tmp_path


def _session(*bundles):
    registry = BundleFactoryRegistry()
    for bundle in bundles:
        registry.add(bundle)
    session = RegistrationSession()
    DependencyResolver(BundleStore(registry)).register(session, bundles[-1].name)
    return session


def _local(web_root, name, **kwargs):
    return BundleDefinition(name=name, base_path=str(web_root / name), base_url=f"/static/{name}", **kwargs)


def test_dependency_files_come_first(web_root):
    session = _session(
        _local(web_root, "jquery", scripts=["jquery.js"]),
        _local(web_root, "app", dependencies=["jquery"], scripts=["app.js"], styles=["app.css"]),
    )
    collector = FileCollector(session)

    collector.collect_all()

    assert list(collector.scripts) == ["/static/jquery/jquery.js", "/static/app/app.js"]
    assert collector.styles == {"/static/app/app.css": FileEntry(url="/static/app/app.css")}


def test_collect_single_bundle_pulls_dependencies(web_root):
    session = _session(
        _local(web_root, "jquery", scripts=["jquery.js"]),
        _local(web_root, "app", dependencies=["jquery"], scripts=["app.js"]),
    )
    collector = FileCollector(session)

    collector.collect("app")

    assert list(collector.scripts) == ["/static/jquery/jquery.js", "/static/app/app.js"]


def test_collect_unregistered_bundle(web_root):
    collector = FileCollector(_session(_local(web_root, "app")))

    with pytest.raises(BundleNotFoundError):
        collector.collect("nope")


def test_registry_positions_applied(web_root):
    session = _session(
        _local(web_root, "jquery", scripts=["jquery.js"]),
        _local(web_root, "app", dependencies=["jquery"], scripts=["app.js", ("extra.js", 7)], script_position=3),
    )
    collector = FileCollector(session)

    collector.collect_all()

    scripts = collector.scripts
    assert scripts["/static/jquery/jquery.js"].position == 3
    assert scripts["/static/app/app.js"].position == 3
    assert scripts["/static/app/extra.js"].position == 7


def test_explicit_key_last_write_wins_keeps_order(web_root):
    """A later bundle replaces a keyed entry but not its place in the order."""
    session = _session(
        _local(web_root, "jquery", scripts=[{"url": "jquery.js", "key": "jquery"}]),
        _local(web_root, "app", dependencies=["jquery"], scripts=["app.js", {"url": "extra.js", "key": "jquery"}]),
    )
    collector = FileCollector(session)

    collector.collect_all()

    assert list(collector.scripts) == ["jquery", "/static/app/app.js"]
    assert collector.scripts["jquery"].url == "/static/app/extra.js"


def test_default_options_merged_under_entry_options(web_root):
    session = _session(
        _local(
            web_root,
            "app",
            scripts=["app.js", {"url": "extra.js", "defer": False, "nonce": "abc"}],
            script_options={"defer": True},
        )
    )
    collector = FileCollector(session)

    collector.collect_all()

    assert collector.scripts["/static/app/app.js"].options == {"defer": True}
    assert collector.scripts["/static/app/extra.js"].options == {"defer": False, "nonce": "abc"}


def test_non_string_default_option_key(web_root):
    session = _session(_local(web_root, "app", scripts=["app.js"], script_options={0: "defer"}))

    with pytest.raises(InvalidFileEntryError):
        FileCollector(session).collect_all()


def test_malformed_entry(web_root):
    session = _session(_local(web_root, "app", scripts=[""]))

    with pytest.raises(InvalidFileEntryError):
        FileCollector(session).collect_all()


def test_missing_local_asset(web_root):
    session = _session(_local(web_root, "app", scripts=["missing.js"]))

    with pytest.raises(AssetNotFoundError, match="missing.js"):
        FileCollector(session).collect_all()


def test_local_bundle_requires_base(web_root):
    session = _session(BundleDefinition(name="app", base_path=str(web_root / "app"), scripts=["app.js"]))

    with pytest.raises(MissingConfigurationError):
        FileCollector(session).collect_all()


def test_absolute_and_external_urls_untouched(web_root):
    urls = ["/root/relative.js", "//cdn.example.com/x.js", "https://cdn.example.com/y.js"]
    session = _session(_local(web_root, "app", scripts=urls))
    fs = MagicMock()

    collector = FileCollector(session, filesystem=fs)
    collector.collect_all()

    assert list(collector.scripts) == urls
    fs.exists.assert_not_called()


def test_aliases_resolved_for_local_bundles(web_root):
    paths = AliasPathResolver({"@public": str(web_root), "@web": "/static"})
    session = _session(BundleDefinition(name="app", base_path="@public/app", base_url="@web/app", scripts=["app.js"]))

    collector = FileCollector(session, paths=paths)
    collector.collect_all()

    assert list(collector.scripts) == ["/static/app/app.js"]


class TestRemote:
    """Remote bundles never touch the filesystem."""

    def test_relative_url_joined_with_base_url(self):
        bundle = BundleDefinition(name="cdn", remote=True, base_url="https://cdn.example.com/", scripts=["a.js"])
        session = _session(bundle)
        fs = MagicMock()

        collector = FileCollector(session, filesystem=fs)
        collector.collect_all()

        assert list(collector.scripts) == ["https://cdn.example.com/a.js"]
        fs.exists.assert_not_called()

    def test_no_base_url_leaves_url(self):
        session = _session(BundleDefinition(name="cdn", remote=True, scripts=["https://cdn.example.com/a.js", "b.js"]))
        fs = MagicMock()

        collector = FileCollector(session, filesystem=fs)
        collector.collect_all()

        assert list(collector.scripts) == ["https://cdn.example.com/a.js", "b.js"]
        fs.exists.assert_not_called()


class TestAssetMap:
    """Asset remapping."""

    def test_suffix_match_replaces_url(self, web_root):
        session = _session(_local(web_root, "foo", scripts=["bar.js"], source_path="@vendor/foo"))
        collector = FileCollector(session, asset_map={"foo/bar.js": "foo/bar.min.js"})

        collector.collect_all()

        assert list(collector.scripts) == ["foo/bar.min.js"]

    def test_remapped_asset_skips_existence_check(self, web_root):
        session = _session(_local(web_root, "app", scripts=["gone.js"]))
        fs = MagicMock()

        collector = FileCollector(session, filesystem=fs, asset_map={"gone.js": "https://cdn.example.com/gone.js"})
        collector.collect_all()

        assert list(collector.scripts) == ["https://cdn.example.com/gone.js"]
        fs.exists.assert_not_called()

    def test_exact_key_wins(self):
        bundle = BundleDefinition(name="x", source_path="vendor/x")

        assert map_asset({"a.js": "exact", "x/a.js": "suffix"}, bundle, "a.js") == "exact"

    def test_longest_suffix_wins(self):
        bundle = BundleDefinition(name="x", source_path="vendor/lib")

        mapped = map_asset({"a.js": "short", "lib/a.js": "long"}, bundle, "dist/../a.js")
        assert mapped == "short"
        assert map_asset({"a.js": "short", "lib/a.js": "long"}, bundle, "lib/a.js") == "long"
        assert map_asset({"a.js": "short", "/lib/a.js": "longer"}, bundle, "x/lib/a.js") == "longer"

    def test_multibyte_suffix(self):
        bundle = BundleDefinition(name="x", source_path="vendor/ünï")

        assert map_asset({"ünï/çødé.js": "mapped"}, bundle, "çødé.js") == "mapped"

    def test_no_match(self):
        bundle = BundleDefinition(name="x")

        assert map_asset({"other.js": "y"}, bundle, "a.js") is None
        assert map_asset({}, bundle, "a.js") is None


@pytest.mark.parametrize(
    "url,expected",
    [
        ("js/app.js", True),
        ("/js/app.js", True),
        ("//cdn.example.com/a.js", False),
        ("https://cdn.example.com/a.js", False),
        ("data://x", False),
    ],
)
def test_is_relative_url(url, expected):
    assert is_relative_url(url) is expected


def test_results_are_copies(web_root):
    session = _session(_local(web_root, "app", scripts=["app.js"]))
    collector = FileCollector(session)
    collector.collect_all()

    collector.scripts.clear()

    assert len(collector.scripts) == 1
