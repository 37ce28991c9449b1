"""Installed-application schema: record field names, column mappings and output columns."""

from typing import Dict, List

# AppRecord fields in ComparisonKey order
STANDARD_HEADERS = [
    "DisplayName",
    "Publisher",
    "DisplayVersion",
    "VersionMajor",
    "VersionMinor",
    "InstallDate",
    "InstallLocation",
]

# Mapping of common column name variations (as found in inventory exports)
# to standard record fields
COLUMN_MAPPINGS: Dict[str, List[str]] = {
    "DisplayName": [
        "displayname", "display name", "display_name", "name",
        "application", "application name", "application_name", "app",
        "app name", "app_name", "program", "program name", "program_name",
        "software", "software name", "software_name", "product", "product name"
    ],
    "Publisher": [
        "publisher", "vendor", "manufacturer", "company", "developer",
        "publisher name", "publisher_name", "vendor name", "vendor_name"
    ],
    "DisplayVersion": [
        "displayversion", "display version", "display_version", "version",
        "app version", "app_version", "product version", "product_version"
    ],
    "VersionMajor": [
        "versionmajor", "version major", "version_major", "major",
        "major version", "major_version"
    ],
    "VersionMinor": [
        "versionminor", "version minor", "version_minor", "minor",
        "minor version", "minor_version"
    ],
    "InstallDate": [
        "installdate", "install date", "install_date", "installed",
        "installed on", "installed_on", "date installed", "date_installed"
    ],
    "InstallLocation": [
        "installlocation", "install location", "install_location",
        "location", "path", "install path", "install_path",
        "installation path", "installation_path"
    ],
}

# Output columns in presentation order
DEFAULT_COLUMNS = [
    "Change",
    "Application",
    "Publisher",
    "OldVersion",
    "Version",
    "User",
    "Installed",
]

DEFAULT_SORT_KEY = "Change"
