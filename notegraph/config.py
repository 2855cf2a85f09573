"""
Configuration for NoteGraph.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

OLLAMA_BASE_URL = "http://localhost:11434"
OPENAI_BASE_URL = "https://api.openai.com/v1"


class LLMConfig(BaseModel):
    """LLM extraction provider configuration."""

    provider: str = "ollama"  # ollama, openai
    model: str = "llama3.1:8b"
    base_url: str = "http://localhost:11434"
    api_key: str | None = None
    temperature: float = 0.0
    max_tokens: int = 2000
    timeout: float = 120.0


class VisionConfig(BaseModel):
    """Vision description provider configuration."""

    provider: str = "ollama"  # ollama, openai
    model: str = "llava:7b"
    base_url: str = "http://localhost:11434"
    api_key: str | None = None
    temperature: float = 0.3
    max_tokens: int = 300
    timeout: float = 60.0


class EmbedderConfig(BaseModel):
    """Embedder configuration."""

    provider: str = "ollama"  # ollama, openai
    model: str = "nomic-embed-text"
    base_url: str = "http://localhost:11434"
    api_key: str | None = None
    timeout: float = 120.0
    # Optional: embedding dimension (fallback to auto-detect)
    dimension: int | None = None


class TokenizerConfig(BaseModel):
    """Token counting configuration for embedding input."""

    provider: str = "tiktoken"  # tiktoken, approximate
    model: str = "cl100k_base"
    chars_per_token: float = 4.0
    max_embedding_tokens: int = 8191


class IndexingConfig(BaseModel):
    """Note indexing pipeline configuration."""

    # "asks": second extraction pass mines topics from asks
    # "intentions": extraction also yields intentions
    pipeline_variant: str = "asks"
    interest_increment: float = 0.1
    memory_decay: float = 0.1
    embed_atomic_knowledge: bool = True
    call_timeout: float = 60.0
    max_concurrent_runs: int = 8


class StoreConfig(BaseModel):
    """Record store configuration."""

    db_path: str = "data/notegraph.db"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class QdrantConfig(BaseModel):
    """Qdrant note vector store configuration."""

    url: str = "http://localhost:6333"
    collection_name: str = "note_vectors"
    use_grpc: bool = False
    on_disk: bool = False
    timeout: int = 30


class Config(BaseModel):
    """Main configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    vision: VisionConfig = Field(default_factory=VisionConfig)
    embedder: EmbedderConfig = Field(default_factory=EmbedderConfig)
    tokenizer: TokenizerConfig = Field(default_factory=TokenizerConfig)
    indexing: IndexingConfig = Field(default_factory=IndexingConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    qdrant: QdrantConfig = Field(default_factory=QdrantConfig)

    # Note vector backend
    vector_backend: str = "sqlite"

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            NOTEGRAPH_LLM_PROVIDER: LLM provider (ollama, openai)
            NOTEGRAPH_LLM_MODEL: LLM model name
            NOTEGRAPH_LLM_API_KEY: LLM API key (for OpenAI)
            NOTEGRAPH_VISION_PROVIDER: Vision provider (ollama, openai)
            NOTEGRAPH_VISION_MODEL: Vision model name
            NOTEGRAPH_EMBEDDER_PROVIDER: Embedder provider
            NOTEGRAPH_EMBEDDER_MODEL: Embedder model name
            NOTEGRAPH_EMBEDDER_DIMENSION: Embedding dimension (optional)
            NOTEGRAPH_PIPELINE_VARIANT: asks or intentions
            NOTEGRAPH_INTEREST_INCREMENT: Interest weight per authored note
            NOTEGRAPH_DB_PATH: SQLite record store path
            NOTEGRAPH_VECTOR_BACKEND: sqlite or qdrant
            NOTEGRAPH_QDRANT_URL: Qdrant URL
        """
        # Load .env file if provided or exists
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None:
                return default
            # If value is empty string, return default
            if value == "":
                return default
            # Convert boolean strings
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            # Convert numeric strings
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        def default_url(provider_key: str) -> str:
            """Default endpoint for the provider named in provider_key."""
            if get_env(provider_key, "ollama") == "openai":
                return OPENAI_BASE_URL
            return OLLAMA_BASE_URL

        return cls(
            llm=LLMConfig(
                provider=get_env("NOTEGRAPH_LLM_PROVIDER", "ollama"),
                model=get_env("NOTEGRAPH_LLM_MODEL", "llama3.1:8b"),
                base_url=get_env(
                    "NOTEGRAPH_LLM_BASE_URL", default_url("NOTEGRAPH_LLM_PROVIDER")
                ),
                api_key=get_env("NOTEGRAPH_LLM_API_KEY"),
                temperature=get_env("NOTEGRAPH_LLM_TEMPERATURE", 0.0),
                max_tokens=get_env("NOTEGRAPH_LLM_MAX_TOKENS", 2000),
                timeout=get_env("NOTEGRAPH_LLM_TIMEOUT", 120.0),
            ),
            vision=VisionConfig(
                provider=get_env("NOTEGRAPH_VISION_PROVIDER", "ollama"),
                model=get_env("NOTEGRAPH_VISION_MODEL", "llava:7b"),
                base_url=get_env(
                    "NOTEGRAPH_VISION_BASE_URL", default_url("NOTEGRAPH_VISION_PROVIDER")
                ),
                api_key=get_env("NOTEGRAPH_VISION_API_KEY"),
                temperature=get_env("NOTEGRAPH_VISION_TEMPERATURE", 0.3),
                max_tokens=get_env("NOTEGRAPH_VISION_MAX_TOKENS", 300),
                timeout=get_env("NOTEGRAPH_VISION_TIMEOUT", 60.0),
            ),
            embedder=EmbedderConfig(
                provider=get_env("NOTEGRAPH_EMBEDDER_PROVIDER", "ollama"),
                model=get_env("NOTEGRAPH_EMBEDDER_MODEL", "nomic-embed-text"),
                base_url=get_env(
                    "NOTEGRAPH_EMBEDDER_BASE_URL", default_url("NOTEGRAPH_EMBEDDER_PROVIDER")
                ),
                api_key=get_env("NOTEGRAPH_EMBEDDER_API_KEY"),
                timeout=get_env("NOTEGRAPH_EMBEDDER_TIMEOUT", 120.0),
                dimension=get_env("NOTEGRAPH_EMBEDDER_DIMENSION", 0) or None,
            ),
            tokenizer=TokenizerConfig(
                provider=get_env("NOTEGRAPH_TOKENIZER_PROVIDER", "tiktoken"),
                model=get_env("NOTEGRAPH_TOKENIZER_MODEL", "cl100k_base"),
                max_embedding_tokens=get_env("NOTEGRAPH_MAX_EMBEDDING_TOKENS", 8191),
            ),
            indexing=IndexingConfig(
                pipeline_variant=get_env("NOTEGRAPH_PIPELINE_VARIANT", "asks"),
                interest_increment=get_env("NOTEGRAPH_INTEREST_INCREMENT", 0.1),
                memory_decay=get_env("NOTEGRAPH_MEMORY_DECAY", 0.1),
                embed_atomic_knowledge=get_env("NOTEGRAPH_EMBED_ATOMIC_KNOWLEDGE", True),
                call_timeout=get_env("NOTEGRAPH_CALL_TIMEOUT", 60.0),
                max_concurrent_runs=get_env("NOTEGRAPH_MAX_CONCURRENT_RUNS", 8),
            ),
            store=StoreConfig(
                db_path=get_env("NOTEGRAPH_DB_PATH", "data/notegraph.db"),
            ),
            vector_backend=get_env("NOTEGRAPH_VECTOR_BACKEND", "sqlite"),
            qdrant=QdrantConfig(
                url=get_env("NOTEGRAPH_QDRANT_URL", "http://localhost:6333"),
                collection_name=get_env("NOTEGRAPH_QDRANT_COLLECTION", "note_vectors"),
                use_grpc=get_env("NOTEGRAPH_QDRANT_USE_GRPC", False),
                on_disk=get_env("NOTEGRAPH_QDRANT_ON_DISK", False),
            ),
            logging=LoggingConfig(
                level=get_env("NOTEGRAPH_LOG_LEVEL", "INFO"),
                log_to_file=get_env("NOTEGRAPH_LOG_TO_FILE", True),
                log_dir=get_env("NOTEGRAPH_LOG_DIR", "logs"),
                file_rotation=get_env("NOTEGRAPH_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("NOTEGRAPH_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("NOTEGRAPH_LOG_COMPRESSION", "zip"),
                serialize=get_env("NOTEGRAPH_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file=env_file)

        # Env sections differing from defaults override YAML sections
        final_dict = {**config_dict}
        default = cls()
        for section in (
            "llm",
            "vision",
            "embedder",
            "tokenizer",
            "indexing",
            "store",
            "qdrant",
            "logging",
        ):
            if getattr(env_config, section) != getattr(default, section):
                final_dict[section] = getattr(env_config, section).model_dump()

        if env_config.vector_backend != default.vector_backend:
            final_dict["vector_backend"] = env_config.vector_backend

        return cls(**final_dict) if final_dict else env_config


# Default config instance
default_config = Config()
