"""Classification of provider error codes into the API error taxonomy."""

from __future__ import annotations

from enum import Enum

from botocore.exceptions import BotoCoreError, ClientError

from s3_api.apierror import ApiError, ErrorKind


class Service(str, Enum):
    OBJECT = "s3"
    IDENTITY = "iam"
    CDN = "cloudfront"
    DNS = "route53"


_S3_CODES: dict[ErrorKind, frozenset[str]] = {
    ErrorKind.FORBIDDEN: frozenset(
        {"AccessDenied", "AccountProblem", "AllAccessDisabled", "Forbidden", "403"}
    ),
    ErrorKind.CONFLICT: frozenset(
        {
            "BucketAlreadyExists",
            "BucketAlreadyOwnedByYou",
            "BucketNotEmpty",
            "InvalidBucketState",
            "OperationAborted",
            "RestoreAlreadyInProgress",
        }
    ),
    ErrorKind.NOT_FOUND: frozenset(
        {
            "NoSuchBucket",
            "NoSuchKey",
            "NoSuchUpload",
            "NotFound",
            "NoSuchBucketPolicy",
            "NoSuchLifecycleConfiguration",
            "NoSuchVersion",
            "404",
        }
    ),
    ErrorKind.BAD_REQUEST: frozenset(
        {
            "ObjectAlreadyInActiveTierError",
            "ObjectNotInActiveTierError",
            "AmbiguousGrantByEmailAddress",
            "AuthorizationHeaderMalformed",
            "BadDigest",
            "CredentialsNotSupported",
            "CrossLocationLoggingProhibited",
            "EntityTooSmall",
            "EntityTooLarge",
            "ExpiredToken",
            "IllegalVersioningConfigurationException",
            "IncompleteBody",
            "IncorrectNumberOfFilesInPostRequest",
            "InlineDataTooLarge",
            "InvalidAddressingHeader",
            "InvalidArgument",
            "InvalidBucketName",
            "InvalidDigest",
            "InvalidEncryptionAlgorithmError",
            "InvalidObjectState",
            "InvalidLocationConstraint",
            "InvalidPart",
            "InvalidPartOrder",
            "InvalidPolicyDocument",
            "InvalidRange",
            "InvalidRequest",
            "InvalidSOAPRequest",
            "InvalidStorageClass",
            "InvalidTargetBucketForLogging",
            "InvalidToken",
            "InvalidURI",
            "KeyTooLongError",
            "MalformedACLError",
            "MalformedPOSTRequest",
            "MalformedXML",
            "MethodNotAllowed",
            "MissingAttachment",
            "MissingContentLength",
            "MissingRequestBodyError",
            "MissingSecurityElement",
            "MissingSecurityHeader",
            "NoLoggingStatusForKey",
            "PreconditionFailed",
            "RequestIsNotMultiPartContent",
            "RequestTorrentOfBucketError",
            "SignatureDoesNotMatch",
            "TokenRefreshRequired",
            "UnexpectedContent",
            "UnresolvableGrantByEmailAddress",
            "UserKeyMustBeSpecified",
        }
    ),
    ErrorKind.LIMIT_EXCEEDED: frozenset(
        {
            "MaxMessageLengthExceeded",
            "MaxPostPreDataLengthExceededError",
            "MetadataTooLarge",
            "ServiceUnavailable",
            "SlowDown",
            "TooManyBuckets",
        }
    ),
    ErrorKind.SERVICE_UNAVAILABLE: frozenset(
        {
            "InvalidAccessKeyId",
            "InvalidPayer",
            "InternalError",
            "InvalidSecurity",
            "NotImplemented",
            "NotSignedUp",
            "PermanentRedirect",
            "Redirect",
            "RequestTimeout",
            "RequestTimeTooSkewed",
            "TemporaryRedirect",
        }
    ),
}

_IAM_CODES: dict[ErrorKind, frozenset[str]] = {
    ErrorKind.FORBIDDEN: frozenset({"Forbidden", "AccessDenied"}),
    ErrorKind.LIMIT_EXCEEDED: frozenset({"LimitExceeded", "ReportGenerationLimitExceeded"}),
    ErrorKind.CONFLICT: frozenset(
        {
            "ReportExpired",
            "ReportNotPresent",
            "ReportInProgress",
            "DeleteConflict",
            "DuplicateCertificate",
            "DuplicateSSHPublicKey",
            "EntityAlreadyExists",
            "ConcurrentModification",
        }
    ),
    ErrorKind.BAD_REQUEST: frozenset(
        {
            "EntityTemporarilyUnmodifiable",
            "InvalidAuthenticationCode",
            "InvalidCertificate",
            "InvalidInput",
            "InvalidPublicKey",
            "InvalidUserType",
            "KeyPairMismatch",
            "MalformedCertificate",
            "MalformedPolicyDocument",
            "PasswordPolicyViolation",
            "PolicyEvaluation",
            "PolicyNotAttachable",
            "NotSupportedService",
            "UnmodifiableEntity",
            "UnrecognizedPublicKeyEncoding",
        }
    ),
    ErrorKind.NOT_FOUND: frozenset({"NoSuchEntity"}),
    ErrorKind.SERVICE_UNAVAILABLE: frozenset({"ServiceFailure"}),
}

_CLOUDFRONT_MISSING_RESOURCE_CODES = frozenset(
    {
        "NoSuchCloudFrontOriginAccessIdentity",
        "NoSuchDistribution",
        "NoSuchFieldLevelEncryptionConfig",
        "NoSuchFieldLevelEncryptionProfile",
        "NoSuchInvalidation",
        "NoSuchOrigin",
        "NoSuchPublicKey",
        "NoSuchResource",
        "NoSuchStreamingDistribution",
        "TrustedSignerDoesNotExist",
    }
)

_CLOUDFRONT_CODES: dict[ErrorKind, frozenset[str]] = {
    ErrorKind.FORBIDDEN: frozenset({"AccessDenied"}),
    ErrorKind.LIMIT_EXCEEDED: frozenset(
        {
            "BatchTooLarge",
            "FieldLevelEncryptionProfileSizeExceeded",
            "TooManyCacheBehaviors",
            "TooManyCertificates",
            "TooManyCloudFrontOriginAccessIdentities",
            "TooManyCookieNamesInWhiteList",
            "TooManyDistributionCNAMEs",
            "TooManyDistributions",
            "TooManyDistributionsAssociatedToFieldLevelEncryptionConfig",
            "TooManyDistributionsWithLambdaAssociations",
            "TooManyFieldLevelEncryptionConfigs",
            "TooManyFieldLevelEncryptionContentTypeProfiles",
            "TooManyFieldLevelEncryptionEncryptionEntities",
            "TooManyFieldLevelEncryptionFieldPatterns",
            "TooManyFieldLevelEncryptionProfiles",
            "TooManyFieldLevelEncryptionQueryArgProfiles",
            "TooManyHeadersInForwardedValues",
            "TooManyInvalidationsInProgress",
            "TooManyLambdaFunctionAssociations",
            "TooManyOriginCustomHeaders",
            "TooManyOriginGroupsPerDistribution",
            "TooManyOrigins",
            "TooManyPublicKeys",
            "TooManyQueryStringParameters",
            "TooManyStreamingDistributionCNAMEs",
            "TooManyStreamingDistributions",
            "TooManyTrustedSigners",
        }
    ),
    ErrorKind.CONFLICT: frozenset(
        {
            "CNAMEAlreadyExists",
            "DistributionAlreadyExists",
            "FieldLevelEncryptionConfigAlreadyExists",
            "FieldLevelEncryptionConfigInUse",
            "FieldLevelEncryptionProfileAlreadyExists",
            "FieldLevelEncryptionProfileInUse",
            "CloudFrontOriginAccessIdentityAlreadyExists",
            "CloudFrontOriginAccessIdentityInUse",
            "PublicKeyAlreadyExists",
            "PublicKeyInUse",
            "StreamingDistributionAlreadyExists",
        }
    ),
    ErrorKind.BAD_REQUEST: frozenset(
        {
            "CannotChangeImmutablePublicKeyFields",
            "DistributionNotDisabled",
            "IllegalFieldLevelEncryptionConfigAssociationWithCacheBehavior",
            "IllegalUpdate",
            "InconsistentQuantities",
            "InvalidArgument",
            "InvalidDefaultRootObject",
            "InvalidErrorCode",
            "InvalidForwardCookies",
            "InvalidGeoRestrictionParameter",
            "InvalidHeadersForS3Origin",
            "InvalidIfMatchVersion",
            "InvalidLambdaFunctionAssociation",
            "InvalidLocationCode",
            "InvalidMinimumProtocolVersion",
            "InvalidOrigin",
            "InvalidOriginAccessIdentity",
            "InvalidOriginKeepaliveTimeout",
            "InvalidOriginReadTimeout",
            "InvalidProtocolSettings",
            "InvalidQueryStringParameters",
            "InvalidRelativePath",
            "InvalidRequiredProtocol",
            "InvalidResponseCode",
            "InvalidTTLOrder",
            "InvalidTagging",
            "InvalidViewerCertificate",
            "InvalidWebACLId",
            "MissingBody",
            "PreconditionFailed",
            "QueryArgProfileEmpty",
            "StreamingDistributionNotDisabled",
        }
    ),
}

_ROUTE53_CODES: dict[ErrorKind, frozenset[str]] = {
    ErrorKind.FORBIDDEN: frozenset({"NotAuthorizedException", "AccessDenied"}),
    ErrorKind.CONFLICT: frozenset(
        {
            "ConcurrentModification",
            "ConflictingDomainExists",
            "ConflictingTypes",
            "DelegationSetAlreadyCreated",
            "DelegationSetAlreadyReusable",
            "DelegationSetInUse",
            "HealthCheckAlreadyExists",
            "HealthCheckInUse",
            "HostedZoneAlreadyExists",
            "TrafficPolicyAlreadyExists",
            "TrafficPolicyInUse",
            "TrafficPolicyInstanceAlreadyExists",
        }
    ),
    ErrorKind.BAD_REQUEST: frozenset(
        {
            "DelegationSetNotAvailable",
            "DelegationSetNotReusable",
            "HealthCheckVersionMismatch",
            "HostedZoneNotEmpty",
            "HostedZoneNotPrivate",
            "IncompatibleVersion",
            "InsufficientCloudWatchLogsResourcePolicy",
            "InvalidArgument",
            "InvalidChangeBatch",
            "InvalidDomainName",
            "InvalidInput",
            "InvalidPaginationToken",
            "InvalidTrafficPolicyDocument",
            "InvalidVPCId",
            "LastVPCAssociation",
            "PriorRequestNotComplete",
            "PublicZoneVPCAssociation",
            "QueryLoggingConfigAlreadyExists",
        }
    ),
    ErrorKind.NOT_FOUND: frozenset(
        {
            "HostedZoneNotFound",
            "NoSuchChange",
            "NoSuchCloudWatchLogsLogGroup",
            "NoSuchDelegationSet",
            "NoSuchGeoLocation",
            "NoSuchHealthCheck",
            "NoSuchHostedZone",
            "NoSuchQueryLoggingConfig",
            "NoSuchTrafficPolicy",
            "NoSuchTrafficPolicyInstance",
            "VPCAssociationAuthorizationNotFound",
            "VPCAssociationNotFound",
        }
    ),
    ErrorKind.LIMIT_EXCEEDED: frozenset(
        {
            "LimitsExceeded",
            "ThrottlingException",
            "Throttling",
            "TooManyHealthChecks",
            "TooManyHostedZones",
            "TooManyTrafficPolicies",
            "TooManyTrafficPolicyInstances",
            "TooManyTrafficPolicyVersionsForCurrentPolicy",
            "TooManyVPCAssociationAuthorizations",
        }
    ),
}


def _invert(table: dict[ErrorKind, frozenset[str]]) -> dict[str, ErrorKind]:
    inverted: dict[str, ErrorKind] = {}
    for kind, codes in table.items():
        for code in codes:
            if code in inverted:
                raise ValueError(f"error code {code} mapped twice")
            inverted[code] = kind
    return inverted


_CODE_TABLES: dict[Service, dict[str, ErrorKind]] = {
    Service.OBJECT: _invert(_S3_CODES),
    Service.IDENTITY: _invert(_IAM_CODES),
    Service.CDN: _invert(_CLOUDFRONT_CODES),
    Service.DNS: _invert(_ROUTE53_CODES),
}


def kind_for_code(
    service: Service,
    code: str,
    *,
    cdn_not_found_as_bad_request: bool = True,
) -> ErrorKind | None:
    """Return the taxonomy kind for a provider code, or ``None`` if unmapped."""
    if service is Service.CDN and code in _CLOUDFRONT_MISSING_RESOURCE_CODES:
        if cdn_not_found_as_bad_request:
            return ErrorKind.BAD_REQUEST
        return ErrorKind.NOT_FOUND
    return _CODE_TABLES[service].get(code)


def provider_error_code(exc: BaseException) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def classify(
    service: Service,
    context: str,
    exc: BaseException,
    *,
    cdn_not_found_as_bad_request: bool = True,
) -> ApiError:
    """Translate an SDK failure into an :class:`ApiError`.

    Mapped provider codes keep the code in the message; unmapped provider
    codes become BadRequest with ``"<context>: <provider message>"``; anything
    that is not a provider error becomes InternalError.
    """
    if isinstance(exc, ApiError):
        return exc

    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = str(error.get("Code", ""))
        provider_message = error.get("Message") or str(exc)
        kind = kind_for_code(
            service, code, cdn_not_found_as_bad_request=cdn_not_found_as_bad_request
        )
        if kind is None:
            return ApiError(ErrorKind.BAD_REQUEST, f"{context}: {provider_message}", exc)
        return ApiError(kind, f"{context}: {code}: {provider_message}", exc)

    if isinstance(exc, BotoCoreError):
        return ApiError(ErrorKind.INTERNAL_ERROR, f"{context}: {exc}", exc)

    return ApiError(ErrorKind.INTERNAL_ERROR, f"{context}: unknown error occurred", exc)
