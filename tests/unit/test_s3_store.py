"""Unit tests for the S3 object store adapter.

boto3 is mocked throughout; no test touches the network.
"""

import io
import json
from unittest import mock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from backend.studio.errors import BackendUnavailableError
from backend.studio.storage.s3 import S3ObjectStore


def _client_error(code: str, operation: str = "GetObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def _store(client: mock.Mock | None = None, **overrides: str) -> S3ObjectStore:
    params = {
        "bucket": "studio-bucket",
        "region": "us-east-1",
        "access_key_id": "AKIA_TEST",
        "secret_access_key": "secret",
    }
    params.update(overrides)
    return S3ObjectStore(client=client, **params)


@pytest.mark.asyncio
async def test_get_json_parses_body() -> None:
    client = mock.Mock()
    client.get_object.return_value = {"Body": io.BytesIO(b'{"userDocuments": []}')}

    data = await _store(client).get_json("db.json")

    assert data == {"userDocuments": []}
    client.get_object.assert_called_once_with(Bucket="studio-bucket", Key="db.json")


@pytest.mark.asyncio
async def test_missing_key_reads_as_none() -> None:
    client = mock.Mock()
    client.get_object.side_effect = _client_error("NoSuchKey")

    assert await _store(client).get_json("blog.json") is None


@pytest.mark.asyncio
async def test_other_client_errors_raise_backend_unavailable() -> None:
    client = mock.Mock()
    client.get_object.side_effect = _client_error("AccessDenied")

    with pytest.raises(BackendUnavailableError, match="Failed to download db.json"):
        await _store(client).get_json("db.json")


@pytest.mark.asyncio
async def test_connection_errors_raise_backend_unavailable() -> None:
    client = mock.Mock()
    client.put_object.side_effect = EndpointConnectionError(endpoint_url="https://s3")

    with pytest.raises(BackendUnavailableError, match="Failed to upload"):
        await _store(client).put_json("db.json", {})


@pytest.mark.asyncio
async def test_put_json_uploads_json_with_content_type() -> None:
    client = mock.Mock()

    await _store(client, prefix="studio").put_json("db.json", {"users": []})

    kwargs = client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "studio-bucket"
    assert kwargs["Key"] == "studio/db.json"
    assert kwargs["ContentType"] == "application/json"
    assert json.loads(kwargs["Body"]) == {"users": []}


@pytest.mark.asyncio
async def test_list_keys_strips_prefix() -> None:
    client = mock.Mock()
    paginator = mock.Mock()
    paginator.paginate.return_value = [
        {"Contents": [{"Key": "studio/db.json"}]},
        {"Contents": [{"Key": "studio/blog.json"}]},
        {},
    ]
    client.get_paginator.return_value = paginator

    keys = await _store(client, prefix="studio").list_keys()

    assert keys == ["db.json", "blog.json"]
    paginator.paginate.assert_called_once_with(Bucket="studio-bucket", Prefix="studio/")


@pytest.mark.asyncio
async def test_exists_maps_404_to_false() -> None:
    client = mock.Mock()
    client.head_object.side_effect = _client_error("404", "HeadObject")

    assert await _store(client).exists("db.json") is False


@pytest.mark.asyncio
async def test_unconfigured_store_refuses_calls() -> None:
    store = S3ObjectStore(bucket=None, region=None, access_key_id=None, secret_access_key=None)

    assert store.configured is False
    with pytest.raises(BackendUnavailableError, match="not configured"):
        await store.get_json("db.json")


@pytest.mark.asyncio
async def test_health_check_misconfigured() -> None:
    store = S3ObjectStore(bucket="b", region=None, access_key_id=None, secret_access_key=None)

    health = await store.health_check()

    assert health.status == "misconfigured"
    assert health.configured is False


@pytest.mark.asyncio
async def test_health_check_reports_unreachable_bucket() -> None:
    client = mock.Mock()
    client.head_bucket.side_effect = _client_error("403", "HeadBucket")

    health = await _store(client).health_check()

    assert health.status == "unhealthy"
    assert health.reachable is False


@mock.patch("backend.studio.storage.s3.boto3.client")
def test_client_created_lazily_with_credentials(mock_boto_client: mock.Mock) -> None:
    store = _store()
    mock_boto_client.assert_not_called()

    client = store.client

    assert client is mock_boto_client.return_value
    mock_boto_client.assert_called_once_with(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="AKIA_TEST",
        aws_secret_access_key="secret",
    )
