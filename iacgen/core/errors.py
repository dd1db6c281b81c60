"""Error taxonomy for the generation service."""


class IacGenError(Exception):
    """Base class for all service errors."""


class ConfigError(IacGenError):
    """Invalid startup configuration. Fatal, the process must not start."""


class PersistError(IacGenError):
    """Request record could not be stored. Never fatal to a pipeline run."""


class PipelineError(IacGenError):
    """A pipeline stage failed; the run aborts and the message is returned to the caller."""


class FetchError(PipelineError):
    pass


class GenerationError(PipelineError):
    pass


class MaterializeError(PipelineError):
    pass


class ArchiveError(PipelineError):
    pass


class UploadError(PipelineError):
    pass
