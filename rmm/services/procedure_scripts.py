"""
Script bodies for system procedures.

WindowsUpdate and SoftwareUpdate procedures do not carry user-written
scripts; the agent receives a PowerShell body built from the procedure's
options. The body is rebuilt every time those options change.
"""

from typing import List, Optional


def split_software_list(raw: Optional[str]) -> List[str]:
    """Split a comma separated winget id list, dropping blanks and duplicates."""
    seen = []
    for item in (raw or "").split(","):
        item = item.strip()
        if item and item not in seen:
            seen.append(item)
    return seen


def build_windows_update_script(
    include_os_updates: bool,
    include_microsoft_product_updates: bool,
    include_feature_updates: bool,
) -> str:
    categories = []
    if include_os_updates:
        categories.extend(["Security Updates", "Critical Updates", "Updates"])
    if include_microsoft_product_updates:
        categories.append("Microsoft Product Updates")
    if include_feature_updates:
        categories.append("Feature Packs")

    category_list = ", ".join(f"'{c}'" for c in categories)
    lines = [
        "# Managed Windows Update (generated)",
        "$ErrorActionPreference = 'Stop'",
        "if (-not (Get-Module -ListAvailable -Name PSWindowsUpdate)) {",
        "    Install-Module -Name PSWindowsUpdate -Force -Scope AllUsers",
        "}",
        "Import-Module PSWindowsUpdate",
    ]
    if include_microsoft_product_updates:
        lines.append("Add-WUServiceManager -MicrosoftUpdate -Confirm:$false | Out-Null")
    lines.extend([
        f"$categories = @({category_list})",
        "Get-WindowsUpdate -Category $categories -AcceptAll -Install -IgnoreReboot -Verbose",
        "Write-Output 'Windows Update run finished. Reboot was not forced.'",
    ])
    return "\n".join(lines)


def build_software_update_script(mode: str, specific_software: Optional[str]) -> str:
    lines = [
        "# 3rd party software update via winget (generated)",
        "$ErrorActionPreference = 'Continue'",
    ]
    if mode == "all":
        lines.append(
            "winget upgrade --all --silent --accept-source-agreements --accept-package-agreements"
        )
    else:
        for package_id in split_software_list(specific_software):
            lines.append(
                f"winget upgrade --id {package_id} -e --silent "
                "--accept-source-agreements --accept-package-agreements"
            )
    lines.append("Write-Output 'Software update run finished.'")
    return "\n".join(lines)
