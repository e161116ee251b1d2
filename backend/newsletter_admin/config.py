from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "newsletters"

    # JWT issued by the identity provider
    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"

    # Admin invites
    master_invite_code: str = ""  # empty disables the master code
    invite_default_max_uses: int = 5
    invite_default_expiry_days: int = 30  # 0 means codes never expire
    invite_list_limit: int = 100

    # Backend
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000
    backend_cors_origins: str = "http://localhost:5173"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.backend_cors_origins.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
