"""Tests for plume.__init__: every public name resolves lazily."""

import pytest

import plume


@pytest.mark.parametrize("name", plume.__all__)
def test_all_names_resolve(name: str) -> None:
    obj = getattr(plume, name)
    assert obj is not None, f"plume.{name} resolved to None"


def test_names_come_from_their_modules() -> None:
    from plume.config import SiteConfig
    from plume.site import Site

    assert plume.Site is Site
    assert plume.SiteConfig is SiteConfig


def test_unknown_name_raises_attribute_error() -> None:
    with pytest.raises(AttributeError, match="no attribute"):
        plume.__getattr__("ThisDoesNotExist")
