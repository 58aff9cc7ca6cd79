from typing import Annotated

# stored as SMALLINT, the range documents the database limit
small_integer = Annotated[int, "[-32768,32767]"]
