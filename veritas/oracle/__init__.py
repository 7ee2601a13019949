from veritas.oracle.client import OracleClient, extract_content
from veritas.oracle.factory import clear_oracle_cache, close_oracle, get_oracle
