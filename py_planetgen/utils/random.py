"""
Random number generation utilities.

Every generation run owns its own SeededRandom instance, created from the
run's PlanetConfig.seed. There is no module-level generator.
"""

import uuid
from typing import Optional, Union


def resolve_seed(seed: Optional[Union[str, int]] = None) -> str:
    """
    Return the seed to record for a generation run.

    A missing seed is replaced with a short random token so the run can
    still be reproduced later from the recorded value.
    """
    if seed is None or seed == "":
        return str(uuid.uuid4())[:8]
    return str(seed)
