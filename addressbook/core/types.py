from typing import Dict, List, Union
from enum import Enum

class ValidationLevel(Enum):
    NONE = 0
    BASIC = 1
    STRICT = 2

ContactDict = Dict[str, Union[str, int, bool, None]]
ValidationResults = Dict[str, List[str]]
