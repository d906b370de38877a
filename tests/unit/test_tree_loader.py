"""
Unit Tests for Tree Loader
==========================

Unit tests for JSON and YAML element tree loading, validation messages
and advisory warnings.
"""

import json

import pytest
import yaml

from stackpaint.core.tree.loader import (
    JSONTreeLoader,
    TreeLoaderFactory,
    YAMLTreeLoader,
    format_location,
    load_tree,
)
from stackpaint.models.schemas import ElementNode, Position


@pytest.fixture
def sample_tree() -> dict:
    """Sample serialized tree."""
    return {
        "name": "root",
        "bounds": {"left": 0, "top": 0, "width": 200, "height": 100},
        "styles": {"display": "block", "background_color": "#ffffff"},
        "children": [
            {
                "name": "card",
                "bounds": {"left": 10, "top": 10, "width": 80, "height": 40},
                "styles": {
                    "display": "block",
                    "position": "relative",
                    "z_index": 1,
                    "background_color": [255, 0, 0],
                    "background_image": [{"kind": "linear-gradient", "angle": 90, "stops": [{"color": "#000"}]}],
                },
            }
        ],
    }


class TestJSONTreeLoader:
    """Test JSON tree loading."""

    @pytest.mark.asyncio
    async def test_load_valid_json(self, sample_tree):
        result = await JSONTreeLoader().load(json.dumps(sample_tree))

        assert result.success
        assert result.errors == []
        assert isinstance(result.tree, ElementNode)
        assert result.tree.children[0].styles.position == Position.RELATIVE
        assert result.tree.children[0].styles.background_color.r == 255
        assert result.processing_time is not None

    @pytest.mark.asyncio
    async def test_invalid_json_syntax(self):
        result = await JSONTreeLoader().load('{"name": "root"')
        assert not result.success
        assert result.errors[0].startswith("Invalid JSON syntax")

    @pytest.mark.asyncio
    async def test_validation_errors_have_paths(self, sample_tree):
        sample_tree["children"][0]["styles"]["opacity"] = 2
        result = await JSONTreeLoader().load(json.dumps(sample_tree))
        assert not result.success
        assert any(error.startswith("children[0].styles.opacity:") for error in result.errors)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field", ["background_origin", "background_position", "mask_repeat", "mask_size"]
    )
    async def test_empty_layer_list_rejected(self, sample_tree, field):
        sample_tree["styles"][field] = []
        result = await JSONTreeLoader().load(json.dumps(sample_tree))
        assert not result.success
        assert any(error.startswith(f"styles.{field}:") for error in result.errors)

    @pytest.mark.asyncio
    async def test_non_object_rejected(self):
        result = await JSONTreeLoader().load("[1, 2]")
        assert not result.success
        assert "must be an object" in result.errors[0]

    @pytest.mark.asyncio
    async def test_wrapped_root(self, sample_tree):
        result = await JSONTreeLoader().load(json.dumps({"root": sample_tree}))
        assert result.success
        assert result.tree.name == "root"

    def test_validate_syntax(self):
        loader = JSONTreeLoader()
        assert loader.validate_syntax("{}")
        assert not loader.validate_syntax("{")


class TestYAMLTreeLoader:
    """Test YAML tree loading."""

    @pytest.mark.asyncio
    async def test_load_valid_yaml(self, sample_tree):
        result = await YAMLTreeLoader().load(yaml.dump(sample_tree))
        assert result.success
        assert result.tree.children[0].name == "card"

    @pytest.mark.asyncio
    async def test_empty_yaml_document(self):
        result = await YAMLTreeLoader().load("---\n")
        assert not result.success
        assert result.errors == ["Empty YAML document"]

    @pytest.mark.asyncio
    async def test_invalid_yaml_syntax(self):
        result = await YAMLTreeLoader().load("name: [unclosed")
        assert not result.success
        assert result.errors[0].startswith("Invalid YAML syntax")


class TestWarnings:
    """Test advisory warnings."""

    @pytest.mark.asyncio
    async def test_z_index_on_static_element(self, sample_tree):
        sample_tree["children"][0]["styles"]["position"] = "static"
        result = await load_tree(json.dumps(sample_tree))
        assert result.success
        assert result.warnings == ["root.children[0]: z-index 1 has no effect on a static element"]

    @pytest.mark.asyncio
    async def test_large_root_bounds(self, sample_tree):
        sample_tree["bounds"]["width"] = 5000
        result = await load_tree(json.dumps(sample_tree))
        assert any("Large root bounds" in warning for warning in result.warnings)

    @pytest.mark.asyncio
    async def test_list_value_outside_list_item(self, sample_tree):
        sample_tree["children"][0]["list_value"] = 3
        result = await load_tree(json.dumps(sample_tree))
        assert "root.children[0]: list value set on an element that is not a list item" in result.warnings


class TestTreeLoaderFactory:
    """Test loader selection."""

    def test_create_loaders(self):
        assert isinstance(TreeLoaderFactory.create_loader("json"), JSONTreeLoader)
        assert isinstance(TreeLoaderFactory.create_loader("YML"), YAMLTreeLoader)

    def test_unsupported_format(self):
        with pytest.raises(ValueError, match="Unsupported tree format"):
            TreeLoaderFactory.create_loader("xml")

    @pytest.mark.parametrize(
        "content,expected",
        [
            ('{"name": "root"}', "json"),
            ("---\nname: root\n", "yaml"),
            ("name: root\n", "yaml"),
            ("  [1]", "json"),
        ],
    )
    def test_detect_format(self, content, expected):
        assert TreeLoaderFactory.detect_format(content) == expected


class TestLoadTree:
    """Test the module-level convenience function."""

    @pytest.mark.asyncio
    async def test_empty_content(self):
        result = await load_tree("   ")
        assert not result.success
        assert result.errors == ["Empty tree content provided"]

    @pytest.mark.asyncio
    async def test_unsupported_format_override(self, sample_tree):
        result = await load_tree(json.dumps(sample_tree), "xml")
        assert not result.success
        assert "Unsupported tree format" in result.errors[0]

    @pytest.mark.asyncio
    async def test_sniffs_yaml(self, sample_tree):
        result = await load_tree(yaml.dump(sample_tree))
        assert result.success

    def test_format_location(self):
        assert format_location(("children", 0, "styles", "opacity")) == "children[0].styles.opacity"
        assert format_location(()) == "<root>"
