"""
Exception classes with built-in guidance for vendoring CI actions.
"""


class VendorError(Exception):
    """Base exception for all vendoring errors."""
    def __init__(self, message: str, repo: str = None, revision: str = None):
        super().__init__(message)
        self.repo = repo
        self.revision = revision
        self.guidance = self._generate_guidance()

    def _generate_guidance(self):
        """Override in subclasses to provide specific guidance."""
        return f"""
❌ Vendoring error: {self}
💡 Check your network connection and try again
"""


class VendoredActionHashMismatch(VendorError):
    """Raised when a fetched action archive does not match its pinned hash."""
    def __init__(self, message: str, expected: str, actual: str, repo: str, revision: str = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message, repo=repo, revision=revision)

    def _generate_guidance(self):
        return f"""
❌ Vendored action {self.repo}@{self.revision} failed its integrity check
   expected sha256: {self.expected}
   actual sha256:   {self.actual}
💡 The archive was not written. Either the download was tampered with or the
   pinned revision no longer produces the same archive; do not update the pinned
   hash without reviewing the upstream change.
"""


class VendorTransportError(VendorError):
    """Raised when fetching, extracting or moving an action archive fails."""
    def __init__(self, message: str, repo: str = None, revision: str = None, url: str = None):
        self.url = url
        super().__init__(message, repo=repo, revision=revision)

    def _generate_guidance(self):
        return f"""
❌ Could not vendor {self.repo or 'action'}@{self.revision or 'unknown'}: {self}
   url: {self.url or 'n/a'}
💡 No partially extracted files were left behind. Check network access to github.com and retry.
"""
