"""Pytest configuration and fixtures."""

import copy
import json
from typing import Any, Dict

import pytest

from apislice.core.walker import collect_references
from apislice.models.document import Document


def _ref(kind: str, name: str) -> Dict[str, str]:
    return {"$ref": f"#/components/{kind}/{name}"}


def _schema_ref(name: str) -> Dict[str, str]:
    return _ref("schemas", name)


def _json_content(schema: Dict[str, Any]) -> Dict[str, Any]:
    return {"application/json": {"schema": schema}}


def _collection_of(name: str) -> Dict[str, Any]:
    return {
        "title": "Collection",
        "type": "object",
        "properties": {
            "value": {"type": "array", "items": _schema_ref(name)},
            "@odata.nextLink": {"type": "string", "nullable": True},
        },
    }


def _path_parameter(name: str, schema: Dict[str, Any] = None) -> Dict[str, Any]:
    return {
        "name": name,
        "in": "path",
        "required": True,
        "schema": schema or {"type": "string"},
    }


GRAPH_DOCUMENT: Dict[str, Any] = {
    "openapi": "3.0.1",
    "info": {"title": "OData Service for namespace microsoft.graph", "version": "v1.0"},
    "servers": [{"url": "https://graph.microsoft.com/v1.0/"}],
    "paths": {
        "/": {
            "get": {
                "tags": ["graphService"],
                "operationId": "graphService.GetGraphService",
                "responses": {"200": {"description": "Retrieved entity"}},
            }
        },
        "/users": {
            "get": {
                "tags": ["users.user"],
                "summary": "List users",
                "operationId": "users.user.ListUser",
                "parameters": [_ref("parameters", "top")],
                "responses": {
                    "200": {
                        "description": "Retrieved collection",
                        "content": _json_content(_collection_of("microsoft.graph.user")),
                    },
                    "default": _ref("responses", "error"),
                },
            },
            "post": {
                "tags": ["users.user"],
                "summary": "Add new entity to users",
                "operationId": "users.user.CreateUser",
                "requestBody": {
                    "description": "New entity",
                    "content": _json_content(_schema_ref("microsoft.graph.user")),
                    "required": True,
                },
                "responses": {
                    "201": {
                        "description": "Created entity",
                        "content": _json_content(_schema_ref("microsoft.graph.user")),
                    }
                },
            },
        },
        "/users/{user-id}": {
            "get": {
                "tags": ["users.user"],
                "operationId": "users.user.GetUser",
                "parameters": [_path_parameter("user-id")],
                "responses": {
                    "200": _ref("responses", "userResponse"),
                    "default": _ref("responses", "error"),
                },
            },
            "patch": {
                "tags": ["users.user"],
                "operationId": "users.user.UpdateUser",
                "parameters": [_path_parameter("user-id")],
                "requestBody": _ref("requestBodies", "userPatch"),
                "responses": {"204": {"description": "Success"}},
            },
            "delete": {
                "tags": ["users.user"],
                "operationId": "users.user.DeleteUser",
                "parameters": [_path_parameter("user-id"), _ref("parameters", "ifMatch")],
                "responses": {"204": {"description": "Success"}},
            },
        },
        "/users/{user-id}/messages": {
            "get": {
                "tags": ["users.message"],
                "operationId": "users.ListMessages",
                "parameters": [_path_parameter("user-id")],
                "responses": {
                    "200": {
                        "description": "Retrieved navigation property",
                        "content": _json_content(_collection_of("microsoft.graph.message")),
                    }
                },
            }
        },
        "/users/{user-id}/messages/{message-id}": {
            "get": {
                "tags": ["users.message"],
                "operationId": "users.GetMessages",
                "parameters": [_path_parameter("user-id"), _path_parameter("message-id")],
                "responses": {
                    "200": {
                        "description": "Retrieved navigation property",
                        "content": _json_content(_schema_ref("microsoft.graph.message")),
                    }
                },
            }
        },
        "/administrativeUnits/{administrativeUnit-id}/microsoft.graph.restore": {
            "post": {
                "tags": ["administrativeUnits.Actions"],
                "operationId": "administrativeUnits.administrativeUnit.restore",
                "parameters": [_path_parameter("administrativeUnit-id")],
                "responses": {
                    "200": {
                        "description": "Success",
                        "content": _json_content(_schema_ref("microsoft.graph.directoryObject")),
                    }
                },
                "x-ms-docs-operation-type": "action",
            }
        },
        "/reports/microsoft.graph.getTeamsUserActivityCounts(period={period})": {
            "get": {
                "tags": ["reports.Functions"],
                "operationId": "reports.getTeamsUserActivityCounts",
                "parameters": [_path_parameter("period")],
                "responses": {
                    "200": {
                        "description": "Success",
                        "content": {"application/octet-stream": {"schema": {"type": "string", "format": "binary"}}},
                    }
                },
                "x-ms-docs-operation-type": "function",
            }
        },
        "/reports/microsoft.graph.getTeamsUserActivityUserDetail(date={date})": {
            "get": {
                "tags": ["reports.Functions"],
                "operationId": "reports.getTeamsUserActivityUserDetail-fbc1",
                "parameters": [_path_parameter("date")],
                "responses": {"200": {"description": "Success"}},
                "x-ms-docs-operation-type": "function",
            }
        },
        "/reports/microsoft.graph.getSharePointSiteUsageDetail(period={period})": {
            "get": {
                "tags": ["reports.Functions"],
                "operationId": "reports.getSharePointSiteUsageDetail-204b",
                "parameters": [_path_parameter("period")],
                "responses": {"200": {"description": "Success"}},
                "x-ms-docs-operation-type": "function",
            }
        },
        "/reports/microsoft.graph.getYammerActivityCounts(date={date})": {
            "get": {
                "tags": ["reports.Functions"],
                "operationId": "reports.getYammerActivityCounts",
                "parameters": [_path_parameter("date", {"type": "string", "format": "date"})],
                "responses": {"200": {"description": "Success"}},
                "x-ms-docs-operation-type": "function",
            }
        },
        "/applications/{application-id}/logo": {
            "get": {
                "tags": ["applications.application"],
                "operationId": "applications.application.GetLogo",
                "parameters": [_path_parameter("application-id")],
                "responses": {
                    "200": {
                        "description": "Retrieved media content",
                        "content": {"application/octet-stream": {"schema": {"type": "string", "format": "binary"}}},
                    }
                },
            },
            "put": {
                "tags": ["applications.application"],
                "operationId": "applications.application.UpdateLogo",
                "parameters": [_path_parameter("application-id")],
                "requestBody": {
                    "description": "New media content.",
                    "content": {"application/octet-stream": {"schema": {"type": "string", "format": "binary"}}},
                    "required": True,
                },
                "responses": {"204": {"description": "Success"}},
            },
        },
        "/applications/{application-id}/createdOnBehalfOf/$ref": {
            "get": {
                "tags": ["applications.directoryObject"],
                "operationId": "applications.GetRefCreatedOnBehalfOf",
                "parameters": [_path_parameter("application-id")],
                "responses": {
                    "200": {
                        "description": "Retrieved navigation property link",
                        "content": _json_content({"type": "string"}),
                    }
                },
            }
        },
        "/applications/{application-id}/owners/$ref": {
            "get": {
                "tags": ["applications.directoryObject"],
                "operationId": "applications.ListRefOwners",
                "parameters": [_path_parameter("application-id")],
                "responses": {
                    "200": {
                        "description": "Retrieved collection",
                        "content": _json_content(_schema_ref("StringCollectionResponse")),
                    }
                },
            },
            "post": {
                "tags": ["applications.directoryObject"],
                "operationId": "applications.CreateRefOwners",
                "parameters": [_path_parameter("application-id")],
                "requestBody": _ref("requestBodies", "refPostBody"),
                "responses": {"204": {"description": "Success"}},
            },
        },
        "/communications/calls/{call-id}/microsoft.graph.keepAlive": {
            "post": {
                "tags": ["communications.Actions"],
                "operationId": "communications.calls.keepAlive",
                "parameters": [_path_parameter("call-id")],
                "responses": {"204": {"description": "Success"}},
                "x-ms-docs-operation-type": "action",
            }
        },
        "/groups/{group-id}/events/{event-id}/calendar/events/microsoft.graph.delta": {
            "get": {
                "tags": ["groups.Functions"],
                "operationId": "groups.group.events.event.calendar.events.delta",
                "parameters": [_path_parameter("group-id"), _path_parameter("event-id")],
                "responses": {
                    "200": {
                        "description": "Success",
                        "content": _json_content({
                            "type": "object",
                            "properties": {"value": {"type": "array", "items": _schema_ref("microsoft.graph.event")}},
                        }),
                    }
                },
                "x-ms-docs-operation-type": "function",
            }
        },
        "/security/hostSecurityProfiles": {
            "get": {
                "tags": ["security.hostSecurityProfile"],
                "operationId": "security.ListHostSecurityProfiles",
                "responses": {
                    "200": {
                        "description": "Retrieved navigation property",
                        "content": _json_content(_collection_of("microsoft.graph.hostSecurityProfile")),
                    }
                },
            }
        },
    },
    "components": {
        "schemas": {
            "microsoft.graph.entity": {
                "title": "entity",
                "type": "object",
                "properties": {"id": {"type": "string"}},
            },
            "microsoft.graph.directoryObject": {
                "allOf": [
                    _schema_ref("microsoft.graph.entity"),
                    {
                        "title": "directoryObject",
                        "type": "object",
                        "properties": {
                            "deletedDateTime": {"type": "string", "format": "date-time", "nullable": True}
                        },
                    },
                ]
            },
            "microsoft.graph.user": {
                "allOf": [
                    _schema_ref("microsoft.graph.directoryObject"),
                    {
                        "title": "user",
                        "type": "object",
                        "properties": {
                            "displayName": {"type": "string", "nullable": True},
                            "mailboxSettings": {
                                "anyOf": [
                                    _schema_ref("microsoft.graph.mailboxSettings"),
                                    {"type": "object", "nullable": True},
                                ]
                            },
                            "age": {
                                "oneOf": [
                                    {"type": "integer", "format": "int32"},
                                    {"type": "string"},
                                    _schema_ref("ReferenceNumeric"),
                                ]
                            },
                            "messages": {"type": "array", "items": _schema_ref("microsoft.graph.message")},
                        },
                    },
                ]
            },
            "microsoft.graph.mailboxSettings": {
                "title": "mailboxSettings",
                "type": "object",
                "properties": {"timeZone": {"type": "string", "nullable": True}},
            },
            "microsoft.graph.message": {
                "allOf": [
                    _schema_ref("microsoft.graph.entity"),
                    {
                        "title": "message",
                        "type": "object",
                        "properties": {
                            "subject": {"type": "string", "nullable": True},
                            "body": {
                                "anyOf": [
                                    _schema_ref("microsoft.graph.itemBody"),
                                    {"type": "object", "nullable": True},
                                ]
                            },
                        },
                    },
                ]
            },
            "microsoft.graph.itemBody": {
                "title": "itemBody",
                "type": "object",
                "properties": {"content": {"type": "string", "nullable": True}},
            },
            "microsoft.graph.event": {
                "allOf": [
                    _schema_ref("microsoft.graph.entity"),
                    {"title": "event", "type": "object", "properties": {"subject": {"type": "string"}}},
                ]
            },
            "microsoft.graph.hostSecurityProfile": {
                "allOf": [
                    _schema_ref("microsoft.graph.entity"),
                    {
                        "title": "hostSecurityProfile",
                        "type": "object",
                        "properties": {
                            "networkInterfaces": {
                                "type": "array",
                                "items": {
                                    "anyOf": [
                                        _schema_ref("microsoft.graph.networkInterface"),
                                        {"type": "object", "nullable": True},
                                    ]
                                },
                            }
                        },
                    },
                ]
            },
            "microsoft.graph.networkInterface": {
                "title": "networkInterface",
                "type": "object",
                "properties": {
                    "description": {
                        "type": "string",
                        "description": "Description of the NIC (e.g. Ethernet adapter, Wireless LAN adapter "
                                       "Local Area Connection <#>, and so on).",
                        "nullable": True,
                    },
                    "ipV4Address": {"type": "string", "nullable": True},
                },
            },
            "ReferenceNumeric": {"enum": ["-INF", "INF", "NaN"], "type": "string", "nullable": True},
            "StringCollectionResponse": {
                "title": "Collection of string",
                "type": "object",
                "properties": {"value": {"type": "array", "items": {"type": "string"}}},
            },
            "ReferenceCreate": {
                "type": "object",
                "properties": {"@odata.id": {"type": "string"}},
            },
            "ODataError": {
                "type": "object",
                "properties": {"error": _schema_ref("MainError")},
            },
            "MainError": {
                "type": "object",
                "properties": {"code": {"type": "string"}, "message": {"type": "string"}},
            },
            "microsoft.graph.unused": {"type": "object"},
        },
        "responses": {
            "userResponse": {
                "description": "Retrieved entity",
                "content": _json_content(_schema_ref("microsoft.graph.user")),
            },
            "error": {
                "description": "error",
                "content": _json_content(_schema_ref("ODataError")),
            },
        },
        "parameters": {
            "top": {
                "name": "$top",
                "in": "query",
                "schema": {"minimum": 0, "type": "integer"},
            },
            "ifMatch": {
                "name": "If-Match",
                "in": "header",
                "schema": {"type": "string"},
            },
        },
        "requestBodies": {
            "userPatch": {
                "description": "New property values",
                "content": _json_content(_schema_ref("microsoft.graph.user")),
                "required": True,
            },
            "refPostBody": {
                "description": "New navigation property ref value",
                "content": _json_content(_schema_ref("ReferenceCreate")),
                "required": True,
            },
        },
        "securitySchemes": {
            "azureaadv2": {
                "type": "oauth2",
                "flows": {
                    "authorizationCode": {
                        "authorizationUrl": "https://login.microsoftonline.com/common/oauth2/v2.0/authorize",
                        "tokenUrl": "https://login.microsoftonline.com/common/oauth2/v2.0/token",
                        "scopes": {},
                    }
                },
            }
        },
    },
    "security": [{"azureaadv2": []}],
}


@pytest.fixture
def graph_document_dict() -> Dict[str, Any]:
    """Plain mapping of a Graph-shaped OpenAPI document."""
    return copy.deepcopy(GRAPH_DOCUMENT)


@pytest.fixture
def graph_document(graph_document_dict) -> Document:
    """Graph-shaped OpenAPI document model."""
    return Document.from_dict(graph_document_dict)


@pytest.fixture
def graph_document_file(tmp_path, graph_document_dict):
    """Graph-shaped document written to a JSON file."""
    path = tmp_path / "v1.0.json"
    path.write_text(json.dumps(graph_document_dict), encoding="utf-8")
    return path


def assert_references_resolve(document: Document) -> None:
    """Every reference used in ``document`` resolves within ``document``."""
    for reference in collect_references(document):
        assert document.components.resolve(reference) is not None, reference.pointer


def find_compositions(node: Any) -> list:
    """Collect every anyOf/oneOf left anywhere under ``node``."""
    found = []
    if isinstance(node, dict):
        for key, value in node.items():
            if key in ("anyOf", "oneOf"):
                found.append(value)
            found.extend(find_compositions(value))
    elif isinstance(node, list):
        for value in node:
            found.extend(find_compositions(value))
    return found
