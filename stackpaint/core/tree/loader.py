"""
Tree Loader
===========

Loads serialized element trees (JSON or YAML) into validated ``ElementNode``
instances. Pydantic performs structural validation; a second pass collects
advisory warnings that do not prevent rendering.
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from stackpaint.config.logging import get_logger
from stackpaint.models.schemas import ElementNode, LoadResult

logger = get_logger(__name__)

# Root bounds beyond which a render is likely to be slow
LARGE_ROOT_WIDTH = 4000
LARGE_ROOT_HEIGHT = 4000


class TreeLoadError(Exception):
    """Exception raised when an element tree cannot be loaded."""

    pass


def format_location(loc: Sequence[Union[str, int]]) -> str:
    """Render a pydantic error location as ``children[0].styles.opacity``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or "<root>"


def format_validation_errors(error: ValidationError) -> List[str]:
    return [f"{format_location(item['loc'])}: {item['msg']}" for item in error.errors()]


def collect_warnings(root: ElementNode) -> List[str]:
    """Walk the tree and report settings that are valid but probably unintended."""
    warnings: List[str] = []

    if root.bounds.width > LARGE_ROOT_WIDTH or root.bounds.height > LARGE_ROOT_HEIGHT:
        warnings.append(
            f"Large root bounds ({root.bounds.width:g}x{root.bounds.height:g}) may impact performance"
        )

    def visit(node: ElementNode, path: str) -> None:
        styles = node.styles
        if styles.z_index is not None and not styles.is_positioned():
            warnings.append(f"{path}: z-index {styles.z_index} has no effect on a static element")
        if node.list_value is not None and not styles.is_list_item():
            warnings.append(f"{path}: list value set on an element that is not a list item")
        for i, child in enumerate(node.children):
            visit(child, f"{path}.children[{i}]")

    visit(root, "root")
    return warnings


class BaseTreeLoader(ABC):
    """Abstract base class for tree loaders."""

    format_name = ""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(loader=self.format_name)

    @abstractmethod
    def _decode(self, content: str) -> Any:
        """Decode raw text into plain Python data."""
        pass

    @abstractmethod
    def validate_syntax(self, content: str) -> bool:
        """Check that the content decodes, without building a tree."""
        pass

    async def load(self, content: str) -> LoadResult:
        """
        Load an element tree from text.

        Args:
            content: Serialized tree

        Returns:
            LoadResult containing the tree or errors
        """
        start_time = time.time()
        try:
            self.logger.info("Loading element tree", length=len(content))
            raw_data = self._decode(content)
            tree, errors = self._build_tree(raw_data)
            if tree is None:
                self.logger.warning("Element tree rejected", error_count=len(errors))
                return LoadResult(
                    success=False,
                    errors=errors,
                    processing_time=time.time() - start_time,
                )

            warnings = collect_warnings(tree)
            return LoadResult(
                success=True,
                tree=tree,
                warnings=warnings,
                processing_time=time.time() - start_time,
            )

        except TreeLoadError as e:
            self.logger.error("Tree loading failed", error=str(e))
            return LoadResult(
                success=False, errors=[str(e)], processing_time=time.time() - start_time
            )

    def _build_tree(self, raw_data: Any) -> Tuple[Optional[ElementNode], List[str]]:
        if raw_data is None:
            return None, [f"Empty {self.format_name.upper()} document"]
        if not isinstance(raw_data, dict):
            return None, [
                f"{self.format_name.upper()} content must be an object, got {type(raw_data).__name__}"
            ]
        # A document may wrap the tree as {"root": {...}}
        if set(raw_data) == {"root"} and isinstance(raw_data["root"], dict):
            raw_data = raw_data["root"]
        try:
            return ElementNode.model_validate(raw_data), []
        except ValidationError as e:
            return None, format_validation_errors(e)


class JSONTreeLoader(BaseTreeLoader):
    """JSON element tree loader."""

    format_name = "json"

    def _decode(self, content: str) -> Any:
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise TreeLoadError(f"Invalid JSON syntax: {e}") from e

    def validate_syntax(self, content: str) -> bool:
        try:
            json.loads(content)
            return True
        except json.JSONDecodeError:
            return False


class YAMLTreeLoader(BaseTreeLoader):
    """YAML element tree loader."""

    format_name = "yaml"

    def _decode(self, content: str) -> Any:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise TreeLoadError(f"Invalid YAML syntax: {e}") from e

    def validate_syntax(self, content: str) -> bool:
        try:
            yaml.safe_load(content)
            return True
        except yaml.YAMLError:
            return False


class TreeLoaderFactory:
    """Factory for creating tree loaders based on format."""

    _loaders: Dict[str, type] = {
        "json": JSONTreeLoader,
        "yaml": YAMLTreeLoader,
        "yml": YAMLTreeLoader,
    }

    @classmethod
    def create_loader(cls, format_name: str) -> BaseTreeLoader:
        """
        Create a tree loader instance.

        Raises:
            ValueError: If the format is not supported
        """
        key = format_name.lower()
        if key not in cls._loaders:
            raise ValueError(f"Unsupported tree format: {format_name}")
        return cls._loaders[key]()

    @classmethod
    def detect_format(cls, content: str) -> str:
        """Guess the format of ``content``; anything that is not JSON is read as YAML."""
        content = content.strip()
        if content.startswith(("{", "[")):
            return "json"
        if content.startswith("---"):
            return "yaml"
        try:
            json.loads(content)
            return "json"
        except json.JSONDecodeError:
            return "yaml"


async def load_tree(content: str, format_name: Optional[str] = None) -> LoadResult:
    """
    Load an element tree using the appropriate loader.

    Args:
        content: Serialized tree
        format_name: Optional format override ("json", "yaml")

    Returns:
        LoadResult containing the tree or errors
    """
    if not content or not content.strip():
        return LoadResult(success=False, errors=["Empty tree content provided"], processing_time=0.0)

    if not format_name:
        format_name = TreeLoaderFactory.detect_format(content)

    try:
        loader = TreeLoaderFactory.create_loader(format_name)
    except ValueError as e:
        return LoadResult(success=False, errors=[str(e)], processing_time=0.0)
    return await loader.load(content)
