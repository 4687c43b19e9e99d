# reads runtime settings from the environment (and .env, if present)
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    db_path: str
    local_storage_path: str
    bucket_dir: str
    store_email: str
    master_admin_email: str
    max_product_images: int = 4


def load_settings() -> Settings:
    data_dir = os.getenv("MACRAME_DATA_DIR", "data")
    return Settings(
        db_path=os.getenv("MACRAME_DB_PATH", os.path.join(data_dir, "db.sqlite")),
        local_storage_path=os.getenv(
            "MACRAME_LOCAL_STORAGE", os.path.join(data_dir, "local_storage.json")
        ),
        bucket_dir=os.getenv(
            "MACRAME_BUCKET_DIR", os.path.join(data_dir, "product-images")
        ),
        store_email=os.getenv("MACRAME_STORE_EMAIL", "contato@macrame.local"),
        master_admin_email=os.getenv("MACRAME_MASTER_ADMIN_EMAIL", "").strip().lower(),
        max_product_images=int(os.getenv("MACRAME_MAX_PRODUCT_IMAGES", "4")),
    )


settings = load_settings()
