#!/usr/bin/env python
# -*- encoding: utf-8 -*-


class PreloadException(Exception):
    pass


class UsageError(PreloadException, RuntimeError):
    pass


class InternalError(PreloadException, RuntimeError):
    pass


class ConfigurationError(PreloadException, RuntimeError):
    pass


class RenderError(PreloadException, RuntimeError):
    pass


# Raised when continuing would be unsafe. Callers are expected to abort.
class FatalError(PreloadException, RuntimeError):
    pass


class NamespaceCreateError(FatalError):
    pass


class WorkloadCreateError(PreloadException, RuntimeError):
    pass


class CleanupError(PreloadException, RuntimeError):
    pass
