"""cvescout - CVE lookups for software inventories.

Match installed software against a CVE-Search instance using CPE 2.3
identifiers and present the vulnerabilities newest first.
"""

__version__ = "1.0.0"

from cvescout.config import Settings

__all__ = ["Settings", "__version__"]
