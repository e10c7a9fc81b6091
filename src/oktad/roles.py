"""
Role assumption chain.

The SAML assertion buys base-account credentials through AssumeRoleWithSAML;
those in turn assume the destination role named by the AWS profile. When the
target has no profile the chain stops after the first hop.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from xml.etree import ElementTree

import boto3
from botocore import UNSIGNED
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import RoleAssumptionError

ROLE_ATTRIBUTE = 'https://aws.amazon.com/SAML/Attributes/Role'
SAML_NAMESPACES = {'saml': 'urn:oasis:names:tc:SAML:2.0:assertion'}


@dataclass(frozen=True)
class RoleCredentials:
    access_key_id: str
    secret_access_key: str
    session_token: str
    expiration: datetime

    @classmethod
    def from_sts(cls, response):
        credentials = response['Credentials']
        return cls(
            access_key_id=credentials['AccessKeyId'],
            secret_access_key=credentials['SecretAccessKey'],
            session_token=credentials['SessionToken'],
            expiration=credentials['Expiration'],
        )


def saml_role_pairs(document):
    """
    Get the AWS roles contained in the assertion as (role_arn, principal_arn)
    pairs. Okta does not promise an order within each value, so the pair is
    sorted by which half names a saml-provider.
    """
    try:
        doc = ElementTree.fromstring(document)
    except ElementTree.ParseError as e:
        raise RoleAssumptionError("Error assuming first role!", detail=f"unreadable SAML assertion: {e}")

    xpath = f".//saml:Attribute[@Name='{ROLE_ATTRIBUTE}']/saml:AttributeValue"
    pairs = []
    for value in doc.findall(xpath, SAML_NAMESPACES):
        parts = [part.strip() for part in (value.text or '').split(',')]
        if len(parts) != 2:
            continue
        if ':saml-provider/' in parts[0]:
            parts.reverse()
        pairs.append((parts[0], parts[1]))
    return pairs


class RoleAssumer:
    def __init__(self, logger, region=None, client_factory=boto3.client):
        self.logger = logger
        self.region = region
        self.client_factory = client_factory

    def _choose_pair(self, account_profile, pairs):
        if not pairs:
            raise RoleAssumptionError("Error assuming first role!", detail="no AWS roles in SAML assertion")

        wanted = account_profile.base_role_arn if account_profile else None
        if not wanted:
            return pairs[0]

        for role_arn, principal_arn in pairs:
            if role_arn == wanted:
                return role_arn, principal_arn
        raise RoleAssumptionError("Error assuming first role!", detail=f"{wanted} not offered by SAML assertion")

    def assume_base(self, account_profile, assertion):
        """Assume the base-account role with the SAML assertion"""
        role_arn, principal_arn = self._choose_pair(account_profile, saml_role_pairs(assertion.document))
        self.logger.debug("assuming base role %s via %s", role_arn, principal_arn)

        # AssumeRoleWithSAML is an unsigned call
        sts = self.client_factory(
            'sts',
            region_name=self.region,
            config=Config(signature_version=UNSIGNED),
        )
        try:
            response = sts.assume_role_with_saml(
                RoleArn=role_arn,
                PrincipalArn=principal_arn,
                SAMLAssertion=assertion.raw,
            )
        except (ClientError, BotoCoreError) as e:
            raise RoleAssumptionError("Error assuming first role!", detail=str(e))

        return RoleCredentials.from_sts(response)

    def assume_destination(self, account_profile, base_credentials):
        """Assume the destination role named by the profile using base credentials"""
        self.logger.debug("assuming destination role %s", account_profile.role_arn)

        sts = self.client_factory(
            'sts',
            region_name=account_profile.region or self.region,
            aws_access_key_id=base_credentials.access_key_id,
            aws_secret_access_key=base_credentials.secret_access_key,
            aws_session_token=base_credentials.session_token,
        )
        params = {
            'RoleArn': account_profile.role_arn,
            'RoleSessionName': f"oktad-{int(time.time())}",
        }
        if account_profile.duration_seconds:
            params['DurationSeconds'] = account_profile.duration_seconds

        try:
            response = sts.assume_role(**params)
        except (ClientError, BotoCoreError) as e:
            raise RoleAssumptionError("Error assuming second role!", detail=str(e))

        return RoleCredentials.from_sts(response)

    def assume_chain(self, account_profile, assertion):
        """Run both hops, or only the first when there is no destination profile"""
        base = self.assume_base(account_profile, assertion)
        if account_profile is None:
            self.logger.debug("no destination profile, using base credentials")
            return base
        return self.assume_destination(account_profile, base)
