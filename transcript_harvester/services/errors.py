from __future__ import annotations


class TranscriptHarvesterError(Exception):
    pass


class BatchPreconditionError(TranscriptHarvesterError):
    """The whole request is meaningless; raised before any network call."""


class MissingCredentialError(BatchPreconditionError):
    pass


class EmptyInputError(BatchPreconditionError):
    pass


class UpstreamError(TranscriptHarvesterError):
    pass


class TranscriptStrategyError(TranscriptHarvesterError):
    pass
