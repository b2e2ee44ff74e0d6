import os
import pytest
from moto import mock_aws
from fastapi.testclient import TestClient

# Dummy AWS credentials for moto
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_REGION"] = "us-east-1"
# Clear the AWS_ENDPOINT_URL so moto mocks are used instead of localstack
os.environ.pop("AWS_ENDPOINT_URL", None)

from app import main as main_module
from app.main import app
from app.settings import Settings
from app.storage.base import UploadResult


def make_settings(tmp_path, **overrides):
    values = dict(
        data_file=str(tmp_path / "data" / "images.json"),
        storage_provider="blob",
        storage_folder="images",
        api_key="",
        aws_region="us-east-1",
        s3_bucket="image-catalog-bucket",
        aws_endpoint_url=None,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        s3_public_base_url=None,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture(scope="function")
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"


@pytest.fixture(scope="function")
def test_settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture(scope="function")
def settings_factory(tmp_path):
    def factory(**overrides):
        return make_settings(tmp_path, **overrides)
    return factory


@pytest.fixture(scope="function")
def fake_provider(mocker):
    """Storage provider double whose uploads return a URL derived from the filename."""
    provider = mocker.Mock()
    provider.name = "blob"

    def fake_upload(data, filename, content_type):
        return UploadResult(
            url=f"https://blob.example.com/{filename}",
            storage={"provider": "blob", "key": filename},
        )

    provider.upload.side_effect = fake_upload
    provider.delete.return_value = True
    return provider


def _client(settings, monkeypatch):
    monkeypatch.setattr(main_module, "settings", settings)
    with mock_aws():
        with TestClient(app) as client:
            yield client


@pytest.fixture(scope="function")
def test_client(aws_credentials, test_settings, monkeypatch):
    yield from _client(test_settings, monkeypatch)


@pytest.fixture(scope="function")
def secured_client(aws_credentials, tmp_path, monkeypatch):
    yield from _client(make_settings(tmp_path, api_key="s3cret"), monkeypatch)
