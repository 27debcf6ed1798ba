"""Connection settings for the RavenDB server backing the vector index."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from embedvault.constants import DEFAULT_RAVENDB_DATABASE, DEFAULT_RAVENDB_URL

# Load environment variables
load_dotenv()


@dataclass(frozen=True)
class RavenDBConfig:
    """Where the vector index lives.

    Attributes:
        url: RavenDB server URL
        database: Database holding one collection per namespace
    """

    url: str = DEFAULT_RAVENDB_URL
    database: str = DEFAULT_RAVENDB_DATABASE

    @classmethod
    def from_env(cls) -> "RavenDBConfig":
        """Read RAVENDB_URL and RAVENDB_DATABASE, defaulting to a local server."""
        return cls(
            url=os.getenv("RAVENDB_URL", DEFAULT_RAVENDB_URL),
            database=os.getenv("RAVENDB_DATABASE", DEFAULT_RAVENDB_DATABASE),
        )
