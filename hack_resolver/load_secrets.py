import os
from dotenv import load_dotenv

load_dotenv()

user = os.getenv("DB_USER", "postgres")
password = os.getenv("DB_PASSWORD", "postgres")
host = os.getenv("DB_HOST", "localhost")
port = os.getenv("DB_PORT", "5432")
db_name = os.getenv("DB_NAME", "hack_resolver")
auth_db_path = os.getenv("AUTH_DB_PATH")
pepper_data = os.getenv("PEPPER_DATA", "")
redis_host = os.getenv("REDIS_HOST", "redis")
redis_port = int(os.getenv("REDIS_PORT", "6379"))
# Identity (32-byte key, hex) of the only caller allowed to deliver randomness
vrf_authority_identity = os.getenv("VRF_AUTHORITY_IDENTITY")

if __name__ == "__main__":
    print(user, host, port, db_name, redis_host, redis_port, vrf_authority_identity)
