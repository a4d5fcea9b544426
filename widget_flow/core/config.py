import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

# Default configuration values
DEFAULT_CONFIG_PATH = "widgetflow.config.yaml"
DEFAULT_FRAMEWORK_IMPORT_PREFIXES = ["next/", "react", "react-dom"]
DEFAULT_COMPONENT_BASE_CLASSES = ["Component", "PureComponent", "React.Component", "React.PureComponent"]
DEFAULT_PAGE_FILE_NAMES = ["page.tsx", "page.jsx", "page.ts", "page.js"]
DEFAULT_PAGES_DIRECTORY = "pages"
DEFAULT_TEXT_SAMPLE_LIMIT = 20
DEFAULT_TEXT_SAMPLE_LENGTH = 50
DEFAULT_CLASS_NAME_COMMENT_LIMIT = 100
DEFAULT_INDENT_SIZE = 2
DEFAULT_TRANSFORM_TIME_BUDGET_MS = None
DEFAULT_TARGET_IMPORTS = ["package:flutter/material.dart"]
DEFAULT_CONTEXT_ANCESTOR_LIMIT = 5
DEFAULT_MAPPING_TABLE_VERSION = None


class WidgetFlowConfig(BaseModel):
    """
    Central configuration model for widget_flow.
    """
    framework_import_prefixes: List[str] = Field(default_factory=lambda: list(DEFAULT_FRAMEWORK_IMPORT_PREFIXES))
    component_base_classes: List[str] = Field(default_factory=lambda: list(DEFAULT_COMPONENT_BASE_CLASSES))
    page_file_names: List[str] = Field(default_factory=lambda: list(DEFAULT_PAGE_FILE_NAMES))
    pages_directory: str = DEFAULT_PAGES_DIRECTORY
    text_sample_limit: int = DEFAULT_TEXT_SAMPLE_LIMIT
    text_sample_length: int = DEFAULT_TEXT_SAMPLE_LENGTH
    context_ancestor_limit: int = DEFAULT_CONTEXT_ANCESTOR_LIMIT

    # Lowering / emission
    class_name_comment_limit: int = DEFAULT_CLASS_NAME_COMMENT_LIMIT
    indent_size: int = DEFAULT_INDENT_SIZE
    target_imports: List[str] = Field(default_factory=lambda: list(DEFAULT_TARGET_IMPORTS))
    # expected element-mapping table version; None accepts any
    mapping_table_version: Optional[str] = DEFAULT_MAPPING_TABLE_VERSION
    # tag -> partial ElementMapping fields, merged over the static table
    extra_element_mappings: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    # Pipeline
    transform_time_budget_ms: Optional[float] = DEFAULT_TRANSFORM_TIME_BUDGET_MS

    # Allow extra fields for flexibility
    class Config:
        extra = "allow"

    def is_framework_import(self, source: str) -> bool:
        return any(
            source == prefix.rstrip("/") or source.startswith(prefix if prefix.endswith("/") else prefix + "/")
            for prefix in self.framework_import_prefixes
        )

    def is_page_path(self, file_path: str) -> bool:
        path = Path(file_path)
        return path.name in self.page_file_names or self.pages_directory in path.parts[:-1]


def load_config(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> WidgetFlowConfig:
    """
    Load configuration from file and overrides.

    Priority:
    1. Overrides (if provided and not None)
    2. Config File (if provided or found at default path)
    3. Default Values

    Args:
        config_path: Path to the YAML config file. If None, tries 'widgetflow.config.yaml'.
        overrides: Dictionary of values that win over the file.

    Returns:
        WidgetFlowConfig: The resolved configuration object.
    """
    config_data: Dict[str, Any] = {}

    target_path = config_path if config_path else DEFAULT_CONFIG_PATH
    path_obj = Path(target_path)

    if path_obj.exists() and path_obj.is_file():
        try:
            with open(path_obj, "r", encoding="utf-8") as f:
                file_data = yaml.safe_load(f)
                if isinstance(file_data, dict):
                    config_data.update(file_data)
                elif file_data:
                    logging.warning(f"Ignoring config file {target_path}: top level is not a mapping")
            logging.info(f"Loaded configuration from {target_path}")
        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Failed to load config file {target_path}: {e}")
    elif config_path:
        logging.warning(f"Config file not found at explicit path: {config_path}")
    else:
        logging.info(f"No config file found at {DEFAULT_CONFIG_PATH}, using defaults.")

    if overrides:
        for key, value in overrides.items():
            if value is not None:
                config_data[key] = value

    return WidgetFlowConfig(**config_data)
