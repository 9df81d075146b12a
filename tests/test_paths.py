"""Tests for alias path resolution."""

import pytest
from asset_bundles.exceptions import InvalidConfigError
from asset_bundles.paths import AliasPathResolver


@pytest.fixture
def resolver():
    return AliasPathResolver(
        {
            "@root": "/var/www/",
            "public": "@root/public",
            "@assets": "@public/assets",
            "@web": "/",
        }
    )


def test_plain_values_unchanged(resolver):
    assert resolver.resolve("/srv/static") == "/srv/static"
    assert resolver.resolve("js/app.js") == "js/app.js"
    assert resolver.resolve("https://cdn.example.com") == "https://cdn.example.com"


def test_alias_alone(resolver):
    assert resolver.resolve("@root") == "/var/www"


def test_alias_with_suffix(resolver):
    assert resolver.resolve("@root/src/app") == "/var/www/src/app"


def test_nested_aliases(resolver):
    """Alias targets may refer to other aliases."""
    assert resolver.resolve("@assets/css") == "/var/www/public/assets/css"


def test_root_target_is_kept(resolver):
    assert resolver.resolve("@web") == "/"
    assert resolver.resolve("@web/assets") == "/assets"


def test_unknown_alias(resolver):
    with pytest.raises(InvalidConfigError, match="@missing"):
        resolver.resolve("@missing/file.js")


def test_alias_cycle():
    resolver = AliasPathResolver({"@a": "@b/x", "@b": "@a/y"})

    with pytest.raises(InvalidConfigError, match="cycle"):
        resolver.resolve("@a")


def test_with_alias_returns_new_resolver(resolver):
    extended = resolver.with_alias("@vendor", "@root/vendor")

    assert extended.resolve("@vendor/jquery") == "/var/www/vendor/jquery"
    with pytest.raises(InvalidConfigError):
        resolver.resolve("@vendor/jquery")
