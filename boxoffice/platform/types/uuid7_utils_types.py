"""
UUID7 pydantic type.

Domain ids are `uuid_utils.UUID` (UUID7, time ordered). Pydantic and
SQLAlchemy only understand the stdlib `uuid.UUID`, so this module provides the
pydantic integration for request/response schemas and the two conversions used
at the repository boundary.
"""

from typing import Any
import uuid

from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema
from uuid_utils import UUID


def to_std_uuid(value: Any) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def to_utils_uuid(value: Any) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


class UtilsUUID7(UUID):
    """
    Accepts a uuid_utils.UUID, a stdlib UUID or a string; always serializes to string.

    JSON input must be a string, python input may already be a UUID object.
    """

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        def _to_uuid(value: Any) -> UUID:
            try:
                return to_utils_uuid(value)
            except Exception as e:
                raise ValueError(f'Invalid UUID: {value}') from e

        return core_schema.json_or_python_schema(
            json_schema=core_schema.chain_schema(
                [
                    core_schema.str_schema(),
                    core_schema.no_info_plain_validator_function(_to_uuid),
                ]
            ),
            python_schema=core_schema.union_schema(
                [
                    core_schema.is_instance_schema(UUID),
                    core_schema.chain_schema(
                        [
                            core_schema.no_info_plain_validator_function(str),
                            core_schema.no_info_plain_validator_function(_to_uuid),
                        ]
                    ),
                ]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                str,
                when_used='always',
                return_schema=core_schema.str_schema(),
            ),
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls, schema: core_schema.CoreSchema, handler: GetJsonSchemaHandler
    ) -> JsonSchemaValue:
        # The internal core schema is irrelevant to OpenAPI
        return {'type': 'string', 'format': 'uuid'}
