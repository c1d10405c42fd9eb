"""Exception hierarchy for a conversion run."""


class ConversionError(Exception):
    """Base class for everything a conversion run can raise."""


class SceneLoadError(ConversionError):
    """The source file could not be imported into a scene."""

    def __init__(self, source, reason):
        self.source = str(source)
        self.reason = reason
        super().__init__(f"Could not load {self.source}: {reason}")


class UnresolvedNameError(ConversionError):
    """A bone or animation channel names a node that is not in the scene."""

    def __init__(self, kind, name):
        self.kind = kind
        self.name = name
        super().__init__(f"Unresolved {kind} name '{name}'")


class ArtifactWriteError(ConversionError):
    """A destination file could not be opened or written."""

    def __init__(self, path, cause):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Could not write {self.path}: {cause}")


class CodecError(ConversionError):
    """A texture could not be converted by the image codec."""

    def __init__(self, source, reason):
        self.source = str(source)
        self.reason = reason
        super().__init__(f"Could not convert texture {self.source}: {reason}")
