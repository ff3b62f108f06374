from .json_file_local_key_value_store import JsonFileLocalKeyValueStore

__all__ = ["JsonFileLocalKeyValueStore"]
