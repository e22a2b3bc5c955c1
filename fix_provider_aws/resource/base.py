from __future__ import annotations

import logging
from abc import ABC
from typing import ClassVar, Dict, List, Optional, Type, TypeVar

from attr import evolve
from attrs import define
from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from fix_provider_aws.aws_client import AwsClient
from fix_provider_aws.error import RemoteCreateError, RemoteDeleteError, RemoteReadError, ValidationError
from fix_provider_aws.resource.schema import Schema, normalize, schema_json, validate_config
from fixlib.json import from_json, to_json
from fixlib.json_bender import Bender, bend
from fixlib.types import Json

log = logging.getLogger("fix.providers.aws")

# Everything the remote side or the transport can raise.
RemoteExceptions = (BotoCoreError, ClientError, Boto3Error)


@define
class AwsApiSpec:
    """
    Specifications for the AWS API to call and the expected response.
    """

    service: str
    api_action: str
    result_property: Optional[str] = None
    expected_errors: Optional[List[str]] = None
    override_iam_permission: Optional[str] = None  # only set if the permission can not be derived

    def iam_permission(self) -> str:
        if self.override_iam_permission:
            return self.override_iam_permission
        else:
            action = "".join(word.title() for word in self.api_action.split("-"))
            return f"{self.service}:{action}"


@define(eq=False, slots=False)
class AwsProviderResource(ABC):
    """
    Base class for all resources managed by this provider.

    A resource instance is the local state of one remote entity.
    The remote identity is stored in id: an empty id means the entity does not exist.
    There is no update: every attribute is immutable and a change replaces the entity.
    Subclasses define kind, schema and mapping and implement the remote calls.
    """

    # The kind of this resource. Needs to be globally unique.
    kind: ClassVar[str] = "aws_provider_resource"
    # The display name of the kind.
    _kind_display: ClassVar[str] = "AWS Resource"
    # The AWS service that is used to manage this kind.
    _kind_service: ClassVar[Optional[str]] = None
    # The attributes that can be configured.
    schema: ClassVar[Schema] = {}
    # The mapping to transform the API json of a read into attribute values.
    mapping: ClassVar[Dict[str, Bender]] = {}

    id: str = ""

    @property
    def display(self) -> str:
        return f"{self._kind_display} ({self.id})" if self.id else self._kind_display

    def exists(self) -> bool:
        return bool(self.id)

    def to_json(self) -> Json:
        return to_json(self)

    @classmethod
    def from_values(cls: Type[AwsResourceType], values: Json) -> AwsResourceType:
        try:
            js = {**values, **normalize(cls.schema, values)}
            return from_json({k: v for k, v in js.items() if v is not None}, cls)
        except Exception as e:
            raise ValidationError(cls.kind, [f"can not read state: {e}"]) from e

    @classmethod
    def from_config(cls: Type[AwsResourceType], config: Json) -> AwsResourceType:
        cls.validate(config)
        return cls.from_values(config)

    @classmethod
    def validate(cls, config: Json) -> None:
        if errors := validate_config(cls.schema, config):
            raise ValidationError(cls.kind, errors)

    @classmethod
    def schema_json(cls) -> Json:
        return {"kind": cls.kind, "service": cls._kind_service, "attributes": schema_json(cls.schema)}

    @classmethod
    def called_mutator_apis(cls) -> List[AwsApiSpec]:
        return []

    @classmethod
    def called_read_apis(cls) -> List[AwsApiSpec]:
        return []

    def update_from_api(self: AwsResourceType, js: Json) -> AwsResourceType:
        """
        Copy all values found in the API response into a new state object.
        Attributes that are not part of the response keep their current value.
        """
        mapped: Json = bend(self.mapping, js)
        values = self.to_json()
        values.update({k: v for k, v in mapped.items() if v is not None})
        return self.from_values(values)

    # region remote calls

    def create_remote(self, client: AwsClient) -> str:
        """
        Create the remote entity and return its identifier.
        """
        raise NotImplementedError(f"Create not implemented for {self.kind}.")

    def read_remote(self, client: AwsClient) -> Optional[Json]:
        """
        Fetch the remote entity. Return None if the entity does not exist.
        """
        raise NotImplementedError(f"Read not implemented for {self.kind}.")

    def delete_remote(self, client: AwsClient) -> None:
        raise NotImplementedError(f"Delete not implemented for {self.kind}.")

    @classmethod
    def from_import_id(cls: Type[AwsResourceType], import_id: str) -> AwsResourceType:
        raise NotImplementedError(f"Import not implemented for {cls.kind}.")

    # endregion

    # region lifecycle

    @classmethod
    def create_resource(cls: Type[AwsResourceType], client: AwsClient, config: Json) -> AwsResourceType:
        resource = cls.from_config(config)
        try:
            resource_id = resource.create_remote(client)
        except RemoteExceptions as e:
            raise RemoteCreateError(cls.kind, resource.display, e) from e
        created = evolve(resource, id=resource_id)
        log.info(f"Created {created.display}")
        return created.read_resource(client)

    def read_resource(self: AwsResourceType, client: AwsClient) -> AwsResourceType:
        if not self.exists():
            return self
        try:
            js = self.read_remote(client)
        except RemoteExceptions as e:
            raise RemoteReadError(self.kind, self.display, e) from e
        if js is None:
            log.warning(f"{self.display} not found, removing from state")
            return evolve(self, id="")
        return self.update_from_api(js)

    def delete_resource(self, client: AwsClient) -> None:
        try:
            self.delete_remote(client)
        except RemoteExceptions as e:
            raise RemoteDeleteError(self.kind, self.display, e) from e
        log.info(f"Deleted {self.display}")

    @classmethod
    def import_resource(cls: Type[AwsResourceType], client: AwsClient, import_id: str) -> AwsResourceType:
        return cls.from_import_id(import_id).read_resource(client)

    # endregion


AwsResourceType = TypeVar("AwsResourceType", bound=AwsProviderResource)
