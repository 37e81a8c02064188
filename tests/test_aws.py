"""Tests for the IAM/STS client wrapper.

Happy paths run against moto's in-memory IAM and STS; permission and
configuration failures use a stub session so the error codes are exact.
"""

from __future__ import annotations

import json
import os
import unittest
from unittest import mock

import boto3
import botocore.exceptions
from moto import mock_aws

from atui.aws import IamClient, assumed_role_from_identity, encode_document
from atui.document import decode_document
from atui.errors import FetchError
from atui.models import Identity, PolicyType

TRUST = json.dumps(
    {
        "Version": "2012-10-17",
        "Statement": [{"Effect": "Allow", "Principal": {"Service": "ec2.amazonaws.com"}, "Action": "sts:AssumeRole"}],
    }
)
READ_BUCKET = {
    "Version": "2012-10-17",
    "Statement": [{"Effect": "Allow", "Action": ["s3:GetObject"], "Resource": "arn:aws:s3:::reports/*"}],
}
WRITE_QUEUE = {
    "Version": "2012-10-17",
    "Statement": [{"Effect": "Allow", "Action": "sqs:SendMessage", "Resource": "*"}],
}


def _fake_env() -> dict[str, str]:
    return {
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SECURITY_TOKEN": "testing",
        "AWS_SESSION_TOKEN": "testing",
        "AWS_DEFAULT_REGION": "us-east-1",
    }


class MotoIamClientTests(unittest.TestCase):
    def setUp(self) -> None:
        env = mock.patch.dict(os.environ, _fake_env())
        env.start()
        self.addCleanup(env.stop)
        os.environ.pop("AWS_PROFILE", None)

        aws = mock_aws()
        aws.start()
        self.addCleanup(aws.stop)

        iam = boto3.client("iam", region_name="us-east-1")
        iam.create_role(RoleName="reporting", AssumeRolePolicyDocument=TRUST, Description="Nightly reports")
        iam.create_role(RoleName="worker", AssumeRolePolicyDocument=TRUST, Description="Queue worker")
        self.policy_arn = iam.create_policy(PolicyName="read-bucket", PolicyDocument=json.dumps(READ_BUCKET))[
            "Policy"
        ]["Arn"]
        iam.attach_role_policy(RoleName="reporting", PolicyArn=self.policy_arn)
        iam.put_role_policy(RoleName="reporting", PolicyName="send-queue", PolicyDocument=json.dumps(WRITE_QUEUE))
        self.client = IamClient(region="us-east-1")

    def test_caller_identity(self) -> None:
        identity = self.client.get_caller_identity()

        self.assertTrue(identity.arn.startswith("arn:aws:"))
        self.assertEqual(identity.account, "123456789012")

    def test_list_roles(self) -> None:
        roles = {role.name: role for role in self.client.list_roles()}

        self.assertIn("reporting", roles)
        self.assertIn("worker", roles)
        self.assertEqual(roles["reporting"].description, "Nightly reports")
        self.assertTrue(roles["worker"].arn.endswith(":role/worker"))

    def test_role_policies_include_managed_and_inline(self) -> None:
        policies = self.client.list_role_policies("reporting")

        by_name = {policy.name: policy for policy in policies}
        self.assertEqual(set(by_name), {"read-bucket", "send-queue"})
        self.assertIs(by_name["read-bucket"].policy_type, PolicyType.CUSTOMER_MANAGED)
        self.assertEqual(by_name["read-bucket"].arn, self.policy_arn)
        self.assertIs(by_name["send-queue"].policy_type, PolicyType.INLINE)
        self.assertEqual(by_name["send-queue"].key, "inline:reporting/send-queue")

    def test_managed_document_is_percent_encoded_default_version(self) -> None:
        raw = self.client.get_policy_document(self.policy_arn, PolicyType.CUSTOMER_MANAGED)

        self.assertNotIn("{", raw)
        self.assertEqual(json.loads(decode_document(raw)), READ_BUCKET)

    def test_inline_document(self) -> None:
        raw = self.client.get_policy_document(
            "", PolicyType.INLINE, policy_name="send-queue", role_name="reporting"
        )

        self.assertEqual(json.loads(decode_document(raw)), WRITE_QUEUE)

    def test_missing_policy_raises_fetch_error(self) -> None:
        with self.assertRaises(FetchError) as ctx:
            self.client.get_policy_document("arn:aws:iam::123456789012:policy/missing")

        self.assertEqual(ctx.exception.code, "NoSuchEntity")
        self.assertIn("error getting policy", str(ctx.exception))


def _client_error(code: str, operation: str) -> botocore.exceptions.ClientError:
    return botocore.exceptions.ClientError({"Error": {"Code": code, "Message": "denied"}}, operation)


class StubSessionTests(unittest.TestCase):
    def _client(self, caller_arn: str, list_roles_pages=None, list_roles_error=None) -> IamClient:
        sts = mock.Mock()
        sts.get_caller_identity.return_value = {"Arn": caller_arn, "Account": "123456789012", "UserId": "AID"}
        iam = mock.Mock()
        paginator = iam.get_paginator.return_value
        if list_roles_error is not None:
            paginator.paginate.side_effect = list_roles_error
        else:
            paginator.paginate.return_value = list_roles_pages or []
        session = mock.Mock()
        session.client.side_effect = lambda service: {"sts": sts, "iam": iam}[service]
        self.session_factory = mock.Mock(return_value=session)
        return IamClient("dev", "eu-west-1", session_factory=self.session_factory)

    def test_session_uses_profile_and_region(self) -> None:
        client = self._client("arn:aws:iam::123456789012:user/alice")
        client.get_caller_identity()
        client.get_caller_identity()

        self.session_factory.assert_called_once_with(profile_name="dev", region_name="eu-west-1")

    def test_access_denied_listing_roles(self) -> None:
        client = self._client(
            "arn:aws:iam::123456789012:user/alice", list_roles_error=_client_error("AccessDenied", "ListRoles")
        )

        with self.assertRaises(FetchError) as ctx:
            client.list_roles()

        self.assertEqual(str(ctx.exception), "insufficient permissions to list IAM roles.")
        self.assertEqual(ctx.exception.code, "AccessDenied")

    def test_other_list_failure_is_wrapped(self) -> None:
        client = self._client(
            "arn:aws:iam::123456789012:user/alice", list_roles_error=_client_error("Throttling", "ListRoles")
        )

        with self.assertRaises(FetchError) as ctx:
            client.list_roles()

        self.assertTrue(str(ctx.exception).startswith("error listing IAM roles:"))
        self.assertEqual(ctx.exception.code, "Throttling")

    def test_assumed_role_survives_access_denied(self) -> None:
        client = self._client(
            "arn:aws:sts::123456789012:assumed-role/Admin/session",
            list_roles_error=_client_error("AccessDenied", "ListRoles"),
        )

        roles = client.list_roles()

        self.assertEqual([role.name for role in roles], ["Admin"])
        self.assertEqual(roles[0].description, "Current assumed role")

    def test_assumed_role_listed_first_without_duplicate(self) -> None:
        pages = [
            {
                "Roles": [
                    {"RoleName": "Admin", "Arn": "arn:aws:iam::123456789012:role/Admin", "Description": "x"},
                    {"RoleName": "dev", "Arn": "arn:aws:iam::123456789012:role/dev"},
                ]
            }
        ]
        client = self._client("arn:aws:sts::123456789012:assumed-role/Admin/session", list_roles_pages=pages)

        roles = client.list_roles()

        self.assertEqual([role.name for role in roles], ["Admin", "dev"])
        self.assertEqual(roles[0].description, "Current assumed role")
        self.assertEqual(roles[1].description, "ARN: arn:aws:iam::123456789012:role/dev")

    def test_configuration_error_is_reported_with_code(self) -> None:
        factory = mock.Mock(side_effect=botocore.exceptions.ProfileNotFound(profile="nope"))
        client = IamClient("nope", session_factory=factory)

        with self.assertRaises(FetchError) as ctx:
            client.get_caller_identity()

        self.assertEqual(ctx.exception.code, "ProfileNotFound")
        self.assertTrue(str(ctx.exception).startswith("error loading AWS configuration:"))


class HelperTests(unittest.TestCase):
    def test_assumed_role_from_identity(self) -> None:
        role = assumed_role_from_identity(
            Identity(arn="arn:aws:sts::123456789012:assumed-role/Deploy/ci", account="123456789012")
        )

        self.assertIsNotNone(role)
        self.assertEqual(role.name, "Deploy")
        self.assertEqual(role.arn, "arn:aws:iam::123456789012:role/Deploy")
        self.assertIsNone(assumed_role_from_identity(Identity(arn="arn:aws:iam::123456789012:user/alice")))

    def test_encode_document(self) -> None:
        self.assertEqual(encode_document("%7B%7D"), "%7B%7D")
        self.assertEqual(decode_document(encode_document({"a": "b c"})), '{"a": "b c"}')


if __name__ == "__main__":
    unittest.main()
