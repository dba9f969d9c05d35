"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (JLAUNCH__SECTION__KEY)
3. Repo YAML (.jlaunch/config.yaml)
4. Global YAML (~/.config/jlaunch/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    JLAUNCH__<SECTION>__<KEY>=<VALUE>

Examples:
    JLAUNCH__LOGGING__LEVEL=DEBUG
    JLAUNCH__LAUNCH__JAVA_EXECUTABLE=/usr/lib/jvm/java-17/bin/java
    JLAUNCH__ARTIFACTS__OFFLINE=false
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from junitlaunch.config.constants import JUNIT_STARTER_CLASS, MAVEN_CENTRAL_URL

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        JLAUNCH__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every source index query.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class LaunchConfig(BaseModel):
    """Child runner process configuration.

    Env vars:
        JLAUNCH__LAUNCH__JAVA_EXECUTABLE: JVM binary used for the child runner
        JLAUNCH__LAUNCH__RUNNER_JAR: Jar containing the runner main class
        JLAUNCH__LAUNCH__JUNIT5_ADAPTER_JAR: Jar of the JUnit 5 runner adapter
        JLAUNCH__LAUNCH__SCRATCH_DIR: Where work manifests are written
        JLAUNCH__LAUNCH__TIMEOUT_SEC: Max wall time for one child process
    """

    java_executable: str = Field(
        default="java",
        description="JVM binary. Resolved through PATH when not absolute.",
    )
    main_class: str = Field(
        default=JUNIT_STARTER_CLASS,
        description="Runner main class that understands the manifest protocol.",
    )
    runner_jar: str | None = Field(
        default=None,
        description="Jar holding the runner main class. Appended to every classpath.",
    )
    junit5_adapter_jar: str | None = Field(
        default=None,
        description="JUnit 5 runner adapter jar. Always appended so the Platform "
        "can discover the adapter even for JUnit 3/4 runs.",
    )
    jvm_args: list[str] = Field(
        default_factory=list,
        description="Extra JVM arguments placed before the main class.",
    )
    scratch_dir: str | None = Field(
        default=None,
        description="Directory for temporary manifests. Default: system temp dir.",
    )
    listeners: list[str] = Field(
        default_factory=list,
        description="Listener class FQNs written to the listeners file.",
    )
    timeout_sec: int = Field(
        default=1800,
        description="Child runner timeout (30 min). The process is killed after this.",
    )

    @field_validator("timeout_sec")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v


class ArtifactsConfig(BaseModel):
    """Platform artifact resolution.

    Env vars:
        JLAUNCH__ARTIFACTS__MAVEN_REPOSITORY: Local Maven repository root
        JLAUNCH__ARTIFACTS__REMOTE_URL: Remote Maven repository base URL
        JLAUNCH__ARTIFACTS__OFFLINE: Never download missing jars
    """

    maven_repository: str = Field(
        default="~/.m2/repository",
        description="Local Maven repository root.",
    )
    remote_url: str = Field(
        default=MAVEN_CENTRAL_URL,
        description="Remote repository used to fill the local repository when online.",
    )
    offline: bool = Field(
        default=True,
        description="Resolve from the local repository only.",
    )
    download_timeout_sec: float = Field(
        default=30.0,
        description="Timeout for a single jar download.",
    )

    @field_validator("maven_repository")
    @classmethod
    def expand_repository(cls, v: str) -> str:
        return str(Path(v).expanduser())


class JLaunchConfig(BaseModel):
    """Root configuration for junit-launch.

    All settings can be configured via:
    1. Environment variables: JLAUNCH__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    launch: LaunchConfig = Field(default_factory=LaunchConfig)
    artifacts: ArtifactsConfig = Field(default_factory=ArtifactsConfig)
