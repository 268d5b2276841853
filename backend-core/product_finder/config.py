import os
from functools import lru_cache
from typing import List


class Settings:
  """Centralized configuration pulled from environment variables."""

  app_name: str = "Product Finder Backend"
  app_version: str = os.getenv("APP_VERSION", "0.0.1")

  shopify_shop: str
  shopify_admin_token: str
  shopify_api_version: str
  shopify_storefront_url: str | None

  finder_timeout_s: float
  model_option_lookup_enabled: bool

  supabase_url: str | None
  supabase_service_role: str | None

  allowed_origins: List[str]
  usage_logging_enabled: bool

  def __init__(self) -> None:
    self.shopify_shop = os.getenv("SHOPIFY_SHOP", "").strip()
    self.shopify_admin_token = os.getenv("SHOPIFY_ADMIN_TOKEN", "").strip()
    # pinned to the Admin API release the catalog queries were written against
    self.shopify_api_version = os.getenv("SHOPIFY_API_VERSION", "2023-10")
    self.shopify_storefront_url = os.getenv("SHOPIFY_STOREFRONT_URL") or None

    self.finder_timeout_s = float(os.getenv("FINDER_TIMEOUT_S", "10"))
    self.model_option_lookup_enabled = os.getenv("FINDER_MODEL_OPTION_LOOKUP", "0") == "1"

    self.supabase_url = os.getenv("SUPABASE_URL")
    self.supabase_service_role = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv(
        "SUPABASE_SERVICE_ROLE"
    )

    default_allowed = [
        "http://localhost:3000",
    ]
    allowed = os.getenv("BACKEND_ALLOWED_ORIGINS")
    if allowed:
      self.allowed_origins = [origin.strip() for origin in allowed.split(",") if origin.strip()]
    else:
      self.allowed_origins = default_allowed

    self.usage_logging_enabled = os.getenv("ENABLE_USAGE_LOGGING", "0") == "1"

  @property
  def storefront_base(self) -> str:
    """Public storefront origin used to build product and search links."""
    if self.shopify_storefront_url:
      return self.shopify_storefront_url.rstrip("/")
    shop = self.shopify_shop.replace(".myshopify.com", "")
    return f"https://{shop}" if shop else ""


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  return Settings()


settings = get_settings()
