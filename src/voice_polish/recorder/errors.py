"""Recorder failures, one class per case a caller may want to branch on."""


class RecorderError(RuntimeError):
    """Base class for recorder failures."""


class UnsupportedError(RecorderError):
    """The host has no usable audio capture API."""


class NoSupportedFormatError(RecorderError):
    """The capture backend supports none of the preferred encodings."""


class RecorderBusyError(RecorderError):
    """A recording session is already active."""


class MicrophoneAccessError(RecorderError):
    """The microphone could not be opened for a reason without a dedicated class."""


class MicrophonePermissionError(MicrophoneAccessError):
    pass


class MicrophoneNotFoundError(MicrophoneAccessError):
    pass


class MicrophoneBusyError(MicrophoneAccessError):
    pass


class MicrophoneConstraintsError(MicrophoneAccessError):
    pass


class CaptureContextError(MicrophoneAccessError):
    pass


class MicrophoneConfigurationError(MicrophoneAccessError):
    pass
