"""
Configuration models and loading for the adosync application.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import logging
import os
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .repositories import DEFAULT_CONFIGURATION_FILE_PATHS
from .url import ProjectUrl, normalize_uri


logger = logging.getLogger(__name__)


CONFIG_PATH = os.environ.get('CONFIG_PATH', '/config/config.yaml')


_config: Optional['WorkflowConfig'] = None


class WorkflowConfig(BaseModel):
    """
    Settings for talking to an Azure DevOps project
    """

    project_url: Optional[str] = None
    project_token: Optional[str] = None

    # where Azure DevOps delivers events, and the password it uses to do so
    webhook_endpoint: Optional[str] = None
    subscription_password: Optional[str] = None

    configuration_file_paths: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CONFIGURATION_FILE_PATHS))

    # required in the x-sync-token header of trigger requests, when set
    sync_token: Optional[str] = None
    sync_on_startup: bool = False

    http_timeout: float = 30.0


    @field_validator('project_url')
    @classmethod
    def check_project_url(cls, v: Optional[str]) -> Optional[str]:
        if v:
            ProjectUrl.parse(v)
        return v


    @field_validator('webhook_endpoint')
    @classmethod
    def check_webhook_endpoint(cls, v: Optional[str]) -> Optional[str]:
        if v:
            normalize_uri(v)
        return v


    @field_validator('configuration_file_paths', mode='before')
    @classmethod
    def split_paths(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [p.strip() for p in v.split(',') if p.strip()]
        return v


    def project(self) -> ProjectUrl:
        """
        The parsed project URL. Raises ValueError if it is unset.
        """

        if not self.project_url:
            raise ValueError('project_url must be set')
        return ProjectUrl.parse(self.project_url)


def _config_from_env() -> Dict[str, Any]:
    """
    Build configuration dictionary from ADOSYNC_* environment variables.
    """

    result = {}
    pairs = (
        ('ADOSYNC_PROJECT_URL', 'project_url'),
        ('ADOSYNC_PROJECT_TOKEN', 'project_token'),
        ('ADOSYNC_WEBHOOK_ENDPOINT', 'webhook_endpoint'),
        ('ADOSYNC_SUBSCRIPTION_PASSWORD', 'subscription_password'),
        ('ADOSYNC_CONFIGURATION_FILE_PATHS', 'configuration_file_paths'),
        ('ADOSYNC_SYNC_TOKEN', 'sync_token'),
        ('ADOSYNC_SYNC_ON_STARTUP', 'sync_on_startup'),
        ('ADOSYNC_HTTP_TIMEOUT', 'http_timeout'))

    for env_var, config_key in pairs:
        value = os.environ.get(env_var)
        if value is not None:
            result[config_key] = value

    return result


def get_config() -> WorkflowConfig:
    """
    Get the global config object.
    """

    global _config

    if _config is None:
        env_config = _config_from_env()

        if os.path.exists(CONFIG_PATH):
            with open(CONFIG_PATH, 'r') as f:
                config_data = yaml.safe_load(f) or {}
            config_data.update(env_config)
        else:
            config_data = env_config

        _config = WorkflowConfig.model_validate(config_data)
        logger.info(f'Loaded configuration for project {_config.project_url}')

    return _config


# The end.
