"""Pydantic models for ctxgen settings (ctxgen.yaml)."""

from pydantic import BaseModel, Field
from typing import Literal


class HttpConfig(BaseModel):
    timeout: float = 30.0
    follow_redirects: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )
    default_headers: dict[str, str] = {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    }


class GitConfig(BaseModel):
    binary: str = "git"
    timeout: int = 60


class CompilerConfig(BaseModel):
    base_path: str = "."
    documents_file: str = "context.yaml"
    max_workers: int = Field(default=4, ge=1)


class CtxgenConfig(BaseModel):
    http: HttpConfig = Field(default_factory=HttpConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    compiler: CompilerConfig = Field(default_factory=CompilerConfig)
    variables: dict[str, str] = {}
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
