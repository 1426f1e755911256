import os

# Use litellm's bundled model cost map instead of fetching it in a background
# thread at import time; that fetch races the import and can deadlock collection.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")
