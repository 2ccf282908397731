"""
Exception classes with built-in guidance for configuration resolution.
"""
import sys


class ConfigException(Exception):
    """Base exception for all configuration errors."""
    def __init__(self, message: str, error_type: str = None, path: str = None,
                 package_name: str = None, field_name: str = None):
        super().__init__(message)
        self.error_type = error_type
        self.path = path
        self.package_name = package_name
        self.field_name = field_name
        self.guidance = self._generate_guidance()

    def _get_current_command(self):
        """Get the current command being executed."""
        if len(sys.argv) > 0:
            executable = sys.argv[0].split('/')[-1]
            args = sys.argv[1:]
            if args:
                return f"{executable} {' '.join(args)}"
            else:
                return executable
        return "unknown command"

    def _generate_guidance(self):
        """Override in subclasses to provide specific guidance."""
        return f"""
❌ Configuration error: {self}
💡 Check your configuration and try again
"""


class ConfigContractError(ConfigException):
    """Raised when a merge site has no disposition for a fragment field.

    This is a programming error in the merge tables, not a user error. It is
    raised while the accumulator classes are being defined.
    """
    def __init__(self, message: str, accumulator: str = None, missing: list = None,
                 unexpected: list = None):
        self.accumulator = accumulator
        self.missing = missing or []
        self.unexpected = unexpected or []
        super().__init__(message, error_type="config_contract")

    def _generate_guidance(self):
        return f"""
❌ Internal configuration contract violated in {self.accumulator or 'unknown accumulator'}: {self}
   Fields without a disposition: {', '.join(self.missing) if self.missing else 'none'}
   Dispositions without a field: {', '.join(self.unexpected) if self.unexpected else 'none'}
💡 Every configuration field needs an explicit disposition at every merge site
"""


class WorkspaceNotFoundError(ConfigException):
    """Raised when the workspace configuration file does not exist."""
    def __init__(self, message: str, path: str = None):
        super().__init__(message, error_type="workspace_not_found", path=path)

    def _generate_guidance(self):
        return f"""
❌ Workspace configuration not found: {self.path}
💡 Run this command from the workspace root, or create dist-workspace.yaml:
   workspace:
     members: ["path/to/package"]
"""


class PackageNotFoundError(ConfigException):
    """Raised when a workspace member has no package configuration file."""
    def __init__(self, message: str, path: str = None, package_name: str = None):
        super().__init__(message, error_type="package_not_found", path=path,
                         package_name=package_name)

    def _generate_guidance(self):
        return f"""
❌ Package configuration not found: {self.path}
💡 Add a dist.yaml with at least:
   package:
     name: your-package
   Or remove the member from workspace.members in dist-workspace.yaml
"""


class ConfigLoadError(ConfigException):
    """Raised when a configuration file cannot be parsed or decoded."""
    def __init__(self, message: str, path: str = None):
        super().__init__(message, error_type="config_load", path=path)

    def _generate_guidance(self):
        return f"""
❌ Failed to load configuration from {self.path or 'unknown file'}: {self}
💡 Check the file for YAML syntax errors and misspelled keys
"""


class CiNotEnabledError(ConfigException):
    """Raised when GitHub CI tasks are requested but ci.github is disabled."""
    def __init__(self, message: str):
        super().__init__(message, error_type="ci_not_enabled", field_name="ci.github")

    def _generate_guidance(self):
        return f"""
❌ {self}
💡 Enable GitHub CI in dist-workspace.yaml:
   dist:
     ci:
       github: true
"""


class GeneratedFileMismatch(ConfigException):
    """Raised when a generated file on disk is out of date."""
    def __init__(self, message: str, path: str = None):
        super().__init__(message, error_type="generated_file_mismatch", path=path)

    def _generate_guidance(self):
        command = self._get_current_command()
        return f"""
❌ {self.path} is out of date with the current configuration
💡 Regenerate it (e.g. {command} without --check) and commit the result
"""
