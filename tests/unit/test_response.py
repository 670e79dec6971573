"""Unit tests for the SamlResponse pipeline.

Tests request validation, identifier and timestamp capture, stage ordering,
audit logging and failure handling of SamlResponse and build_response.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from lxml import etree

from fake_idp.models.saml import BuildResult
from fake_idp.saml.constants import NSMAP
from fake_idp.saml.encryptor import Encryptor
from fake_idp.saml.response import SamlResponse, build_response
from fake_idp.utils.exceptions import (
    CertificateLoadError,
    ConfigurationError,
    DocumentStructureError,
)

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestRequestValidation:
    """Test validation performed when a SamlResponse is created."""

    @pytest.mark.parametrize("field_name", ["name_id", "issuer_uri", "acs_url", "request_id"])
    def test_empty_required_field(self, response_request, field_name):
        request = replace(response_request, **{field_name: ""})

        with pytest.raises(ConfigurationError, match=field_name):
            SamlResponse(request)

    def test_empty_attribute_name(self, response_request):
        request = replace(response_request, user_attributes={"": "x"})

        with pytest.raises(ConfigurationError, match="Attribute names"):
            SamlResponse(request)

    def test_none_attribute_value(self, response_request):
        request = replace(response_request, user_attributes={"email": None})

        with pytest.raises(ConfigurationError, match="has no value"):
            SamlResponse(request)

    @pytest.mark.parametrize("field_name", ["name_id", "issuer_uri", "acs_url", "request_id"])
    def test_control_character_in_field(self, response_request, field_name):
        request = replace(response_request, **{field_name: "user\x00@example.com"})

        with pytest.raises(ConfigurationError, match=f"{field_name} contains a character"):
            SamlResponse(request)

    def test_control_character_in_attribute_value(self, response_request):
        """Test an XML-incompatible value is rejected before assembly."""
        # Arrange
        request = replace(response_request, user_attributes={"x": "a\x01b"})

        # Act & Assert
        with patch("fake_idp.saml.response.assemble_response") as mock_assemble:
            with pytest.raises(ConfigurationError, match=r"U\+0001"):
                build_response(request)
        mock_assemble.assert_not_called()

    def test_control_character_in_attribute_name(self, response_request):
        request = replace(response_request, user_attributes={"ro\x1fle": "admin"})

        with pytest.raises(ConfigurationError, match="Attribute name"):
            SamlResponse(request)

    def test_tab_and_newline_allowed(self, response_request):
        request = replace(response_request, user_attributes={"address": "1 Main St\n\tSuite 2"})

        root = etree.fromstring(SamlResponse(request).build().encode("utf-8"))

        value = root.find(".//saml:AttributeValue", NSMAP)
        assert value.text == "1 Main St\n\tSuite 2"


class TestSamlResponseCapture:
    """Test identifiers and timestamps fixed at creation."""

    def test_clock_sets_issue_instant(self, response_request):
        response = SamlResponse(response_request, clock=lambda: FIXED_NOW)

        assert response.timestamps.issue_instant == "2024-03-01T12:00:00Z"

    def test_identifiers_fixed_per_instance(self, response_request):
        """Test repeated builds of one instance reuse its IDs."""
        # Arrange
        response = SamlResponse(response_request)

        # Act
        first = response.build_result()
        second = response.build_result()

        # Assert
        assert first.identifiers == second.identifiers == response.identifiers

    def test_document_uses_captured_values(self, response_request):
        # Arrange
        response = SamlResponse(response_request, clock=lambda: FIXED_NOW)

        # Act
        root = etree.fromstring(response.build().encode("utf-8"))

        # Assert
        assertion = root.find("saml:Assertion", NSMAP)
        assert root.get("ID") == response.identifiers.response_id
        assert root.get("IssueInstant") == "2024-03-01T12:00:00Z"
        assert assertion.get("ID") == response.identifiers.assertion_id
        assert assertion.find("saml:Conditions", NSMAP).get("NotBefore") == "2024-03-01T11:59:55Z"


class TestBuildResult:
    """Test build_result outcome."""

    def test_returns_build_result(self, response_request):
        result = SamlResponse(response_request).build_result()

        assert isinstance(result, BuildResult)
        assert result.encrypted is False
        assert result.xml.startswith("<?xml")

    def test_placeholders_filled(self, response_request):
        root = etree.fromstring(SamlResponse(response_request).build().encode("utf-8"))

        assert root.find(".//ds:DigestValue", NSMAP).text
        assert root.find(".//ds:SignatureValue", NSMAP).text

    def test_encryption_enabled(self, response_request):
        # Arrange
        request = replace(response_request, encryption_enabled=True)

        # Act
        result = SamlResponse(request).build_result()

        # Assert
        root = etree.fromstring(result.xml.encode("utf-8"))
        assert result.encrypted is True
        assert root.find("saml:Assertion", NSMAP) is None
        assert root.find("saml:EncryptedAssertion", NSMAP) is not None

    def test_custom_encryptor_used(self, response_request):
        """Test the encryptor passed in is the one the pipeline calls."""
        # Arrange
        request = replace(response_request, encryption_enabled=True)
        encryptor = Encryptor()

        # Act
        with patch.object(encryptor, "encrypt", wraps=encryptor.encrypt) as mock_encrypt:
            SamlResponse(request, encryptor=encryptor).build()

        # Assert
        mock_encrypt.assert_called_once()
        assert mock_encrypt.call_args[0][1] == response_request.certificate

    def test_encryptor_not_called_when_disabled(self, response_request):
        encryptor = Encryptor()

        with patch.object(encryptor, "encrypt") as mock_encrypt:
            SamlResponse(response_request, encryptor=encryptor).build()

        mock_encrypt.assert_not_called()


class TestBuildFailures:
    """Test failures abort the build and are audited."""

    def test_malformed_key_fails_before_assembly(self, response_request):
        """Test key loading happens before any XML is produced."""
        # Arrange
        request = replace(response_request, private_key=b"not a key")

        # Act & Assert
        with patch("fake_idp.saml.response.assemble_response") as mock_assemble:
            with pytest.raises(CertificateLoadError):
                SamlResponse(request).build()
        mock_assemble.assert_not_called()

    def test_malformed_certificate(self, response_request):
        request = replace(response_request, certificate=b"garbage")

        with pytest.raises(CertificateLoadError):
            SamlResponse(request).build()

    def test_structure_error_propagates(self, response_request):
        with patch(
            "fake_idp.saml.response.assemble_response",
            return_value="<samlp:Response xmlns:samlp='urn:oasis:names:tc:SAML:2.0:protocol'/>",
        ):
            with pytest.raises(DocumentStructureError):
                SamlResponse(response_request).build()

    def test_failure_is_audited(self, response_request, caplog):
        # Arrange
        request = replace(response_request, private_key=b"not a key")

        # Act
        with caplog.at_level(logging.INFO, logger="fake_idp.logging_audit.audit"):
            with pytest.raises(CertificateLoadError):
                SamlResponse(request).build()

        # Assert
        assert "AUDIT [RESPONSE_BUILD_FAILED]" in caplog.text
        assert "status=failure" in caplog.text
        assert "CertificateLoadError" in caplog.text

    def test_success_is_audited(self, response_request, caplog):
        with caplog.at_level(logging.INFO, logger="fake_idp.logging_audit.audit"):
            response = SamlResponse(response_request)
            response.build()

        assert "AUDIT [RESPONSE_BUILT]" in caplog.text
        assert f"response_id={response.identifiers.response_id}" in caplog.text
        assert "digest_algorithm=SHA256" in caplog.text


class TestBuildResponse:
    """Test the build_response convenience function."""

    def test_fresh_identifiers_each_call(self, response_request):
        first = etree.fromstring(build_response(response_request).encode("utf-8"))
        second = etree.fromstring(build_response(response_request).encode("utf-8"))

        assert first.get("ID") != second.get("ID")
        assert (
            first.find("saml:Assertion", NSMAP).get("ID")
            != second.find("saml:Assertion", NSMAP).get("ID")
        )
