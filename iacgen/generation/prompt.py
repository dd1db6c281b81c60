"""Prompt construction for IaC generation."""
import json
from typing import List

SYSTEM_DIRECTIVE = (
    "You are an expert platform engineer. Given an OAM Application spec, generate a minimal yet "
    "production-ready IaC project for the requested tool and provider. You are allowed to choose the "
    "file/folder structure dynamically. Output a JSON mapping of file paths to file contents. Only "
    "include files that are necessary to deploy the described resources. Prefer least-privilege, "
    "tags/labels, and outputs. CRITICAL: Do NOT create separate variables.tf or outputs.tf files if "
    "variables/outputs are already defined in main.tf. Avoid duplicate declarations - use either "
    "main.tf only OR separate files, not both."
)

# Tools that deploy through a generated shell script instead of a provisioning project
SCRIPT_TOOLS = {"gcloud"}

DEPLOY_SCRIPT_NAME = "deploy.sh"

SCRIPT_REQUIREMENTS = [
    "Generate a complete and runnable shell script named 'deploy.sh' that uses gcloud commands to deploy "
    "the application described in the OAM specification.",
    "The script must not be a template. It should be a fully functional script that can be executed directly.",
    "Use the component name from the OAM spec as the service name.",
    "Use the image from the OAM spec as the container image.",
    "Expose environment variables for key parameters like region and project.",
]

PROJECT_REQUIREMENTS = [
    "Project must be runnable by 'init/plan/apply/destroy' for the given tool.",
    "Include backend/state config if required; default to local if unspecified.",
    "Expose variables/inputs for key parameters (region, project, name, image, scaling, env).",
]

OUTPUT_FORMAT = {
    "type": "json_object",
    "schema": {
        "files": {
            "type": "object",
            "description": "A map of file paths to their string content.",
            "additionalProperties": {"type": "string"},
        }
    },
}


def requirements_for(tool: str) -> List[str]:
    """Pick the requirement list matching the deployment style of the tool."""
    if tool in SCRIPT_TOOLS:
        return list(SCRIPT_REQUIREMENTS)
    return list(PROJECT_REQUIREMENTS)


def build_prompt(oam_yaml: str, provider: str, tool: str) -> str:
    """Build the full generation prompt: system directive followed by the JSON request."""
    request = {
        "instructions": {
            "tool": tool,
            "provider": provider,
            "requirements": requirements_for(tool),
        },
        "oam": oam_yaml,
        "output_format": OUTPUT_FORMAT,
    }
    user_prompt = json.dumps(request, separators=(",", ":"))
    return f"{SYSTEM_DIRECTIVE}\n\nUser Prompt:\n{user_prompt}"
