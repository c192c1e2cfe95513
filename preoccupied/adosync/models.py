"""
Data models exchanged with Azure DevOps and with callers of the
adosync service.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class RemoteModel(BaseModel):
    """
    Base for models that use the camelCase field names of the Azure
    DevOps REST API on the wire.
    """

    model_config = {
        'alias_generator': to_camel,
        'populate_by_name': True,
    }


    def to_wire(self) -> Dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Subscription(RemoteModel):
    """
    A service hooks subscription. Fields the service does not manage
    (status, links, audit information) are retained as extras so that
    an update sends them back unchanged.
    """

    model_config = {'extra': 'allow'}

    id: Optional[str] = None
    event_type: str
    resource_version: str
    publisher_id: str
    publisher_inputs: Dict[str, str] = Field(default_factory=dict)
    consumer_id: str
    consumer_action_id: str
    consumer_inputs: Dict[str, str] = Field(default_factory=dict)


class Repository(RemoteModel):
    """
    Read-only projection of a Git repository
    """

    id: str
    name: str
    default_branch: Optional[str] = None
    remote_url: Optional[str] = None
    web_url: Optional[str] = None


class ConfigFileItem(RemoteModel):
    """
    Result of looking up a single path within a repository
    """

    path: str
    content: Optional[str] = None
    exists: bool = True
    object_id: Optional[str] = None
    commit_id: Optional[str] = None


class ProcessSynchronization(RemoteModel):
    """
    Request to synchronize repositories with the project.

    When neither identifier is supplied the whole project is
    synchronized. Otherwise exactly one of ``repository_id`` or
    ``repository_provider_id`` names the single repository to
    synchronize; the consumer of this message enforces that.
    """

    # whether to trigger update jobs where changes were detected
    trigger: bool = False

    repository_id: Optional[str] = None
    repository_provider_id: Optional[str] = None


    @property
    def repository(self) -> Optional[str]:
        """
        The repository identifier in scope, or None for project-wide
        """

        return self.repository_provider_id or self.repository_id


# The end.
