"""Shared Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProvisionConfig(BaseModel):
    python_version: str = "3.8.13"
    env_name: str = "spark3"
    package: str = "pyspark"
    entry_point: str = "pyspark"
    pin_local: bool = True


class PackageMetadata(BaseModel):
    """Key/value fields reported by ``pip show``."""

    fields: dict[str, str] = Field(default_factory=dict)

    def field(self, key: str) -> str:
        """Return the first whitespace-delimited token of *key*, or ``""``."""
        value = self.fields.get(key, "")
        parts = value.split()
        return parts[0] if parts else ""


class SparkExports(BaseModel):
    spark_home: str = ""
    pyspark_python: str = ""

    def as_environ(self) -> dict[str, str]:
        return {"SPARK_HOME": self.spark_home, "PYSPARK_PYTHON": self.pyspark_python}


class ProvisionResult(BaseModel):
    config: ProvisionConfig
    installed_version: bool = False
    created_env: bool = False
    installed_package: bool = False
    package_install_failed: bool = False
    pin_returncode: int = 0
    exports: SparkExports = Field(default_factory=SparkExports)
