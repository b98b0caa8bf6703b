"""Provider feed mappers producing canonical position records."""

from trackhub.ingestion.atualcargo import map_atualcargo_positions
from trackhub.ingestion.sitrax import map_sitrax_positions

__all__ = ["map_atualcargo_positions", "map_sitrax_positions"]
