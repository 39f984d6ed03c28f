"""
Recommendation Prompts - Category-specific instructions for the synthesizer.

One prompt is assembled per query:

    BASE_PROMPT
      ├── DEVICE DATA            format_device_data(snapshot)
      ├── USER QUERY ANALYSIS    QueryAnalysis.to_prompt_dict()
      ├── INSTRUCTIONS           one of the four blocks below
      └── OUTPUT FORMAT          the JSON contract for that category

All templates are module constants and are never mutated.
"""

from typing import List

from powerguard.telemetry.schemas import DeviceSnapshot, AppUsage


# ---------------------------------------------------------------------------
# BASE PROMPT
# ---------------------------------------------------------------------------

BASE_PROMPT = """You are an AI assistant for a mobile power and data management app.
Analyze the device data and user query to provide the most helpful response.

DEVICE DATA:
{device_data}

USER QUERY ANALYSIS:
{analysis}

ADDITIONAL INSTRUCTIONS:
{instructions}

OUTPUT FORMAT:
{output_contract}

Provide a clear, concise response that directly addresses the user's query.
Use exact numbers from the device data whenever possible."""


# ---------------------------------------------------------------------------
# CATEGORY INSTRUCTIONS
# ---------------------------------------------------------------------------

INFORMATION_INSTRUCTIONS = """This is an INFORMATION query. The user wants specific statistics or rankings.

SPECIFIC RESPONSE GUIDELINES:
1. For "top N" queries (e.g. "Top 5 data-consuming apps today"):
   - Return exactly N apps in descending order
   - If N is not specified, default to top 3
   - Format: "1. App Name (usage amount)\\n2. App Name (usage amount)..."
2. For "which apps" questions: return the top 3 apps in descending order
3. For a specific app (e.g. "How much data has YouTube used this week?"):
   - If the app exists in the device data, return ONLY its exact usage
   - If not, say "No usage reported by [app name]"
4. For background usage questions: return the top 3 background consumers

DO NOT INCLUDE ANY ACTIONABLE ITEMS OR SUGGESTIONS. This is an information-only response.
NEVER suggest restricting apps or changing settings.
JUST PROVIDE THE FACTS - numbers, statistics and factual information only."""

PREDICTION_INSTRUCTIONS = """This is a PREDICTIVE query. The user wants to know if they have sufficient resources.
- Make a clear yes/no prediction based on current resource levels and usage patterns
- Give a confidence level for the prediction (high, medium, low)
- Explain the key factors that influenced the prediction
- Offer alternatives if the prediction is negative
- Include concrete numbers (e.g. "You have 45% battery which should last 2.5 hours at your current usage")
- Do not include actionables."""

OPTIMIZATION_INSTRUCTIONS = """This is an OPTIMIZATION request. The user wants recommendations to save resources.
- Prioritize the resource type mentioned (battery and/or data)
- Provide 3-5 concrete, actionable steps sorted by impact (highest impact first)
- Apps named in the query or listed in priority_apps must keep running: NEVER restrict them
- Consider the context (e.g. traveling, gaming) in your recommendations
- Only use these actionable types: {allowed_types}
- For SetStandbyBucket set "new_mode" to "restricted" """

MONITORING_INSTRUCTIONS = """This is a MONITORING trigger request. The user wants to set up alerts.
- Create exactly one SetAlert actionable per resource mentioned (battery and/or data)
- Battery alerts carry "threshold" as a percentage; data alerts carry "threshold_mb" in MB
- Use the app's package_name when the alert is about a specific app, otherwise "system"
- Confirm the monitoring condition clearly and explain what happens when it is met
- Keep the response brief but complete"""


# ---------------------------------------------------------------------------
# OUTPUT CONTRACTS
# ---------------------------------------------------------------------------

INSIGHTS_ONLY_CONTRACT = """Respond with a JSON object containing ONLY the "insights" array:
{
  "insights": [
    {"type": "information", "title": "Short title", "description": "Facts with numbers", "severity": "low"}
  ]
}"""

ACTIONABLE_CONTRACT = """Respond with a JSON object:
{
  "insights": [
    {"type": "battery|data|optimization|monitoring", "title": "Short title", "description": "Explanation", "severity": "low|medium|high"}
  ],
  "actionable": [
    {
      "type": "one of the allowed actionable types",
      "package_name": "com.example.app or system",
      "description": "What will be done",
      "reason": "Why it helps",
      "new_mode": "optional, e.g. restricted",
      "threshold": "optional battery percentage",
      "threshold_mb": "optional data amount in MB",
      "estimated_battery_savings": "optional minutes",
      "estimated_data_savings": "optional MB",
      "severity": 1-5
    }
  ],
  "batteryScore": 0-100,
  "dataScore": 0-100,
  "performanceScore": 0-100
}"""


# ---------------------------------------------------------------------------
# DEVICE DATA SUMMARY
# ---------------------------------------------------------------------------

def _format_app_line(rank: int, app: AppUsage) -> str:
    return (
        f"  {rank}. {app.app_name} ({app.package_name}): "
        f"battery {app.battery_usage_percent:.1f}%, "
        f"data {app.total_mb:.1f} MB ({app.background_mb:.1f} MB background)"
    )


def format_device_data(snapshot: DeviceSnapshot, limit: int = 5) -> str:
    """
    Summarize a snapshot for the prompt.

    Lists the top apps by battery and by data rather than dumping every app,
    which keeps the prompt small on devices with hundreds of packages.
    """
    charging = "charging" if snapshot.battery.is_charging else "not charging"
    lines: List[str] = [
        f"Battery: {snapshot.battery.level}% ({charging})",
        f"Network: {snapshot.network_type}",
    ]
    if snapshot.data_remaining_mb is not None:
        lines.append(f"Data plan: {snapshot.data_remaining_mb:.0f} MB remaining of {snapshot.data_plan_mb:.0f} MB")

    if not snapshot.apps:
        lines.append("No per-app usage available.")
        return "\n".join(lines)

    lines.append("Top battery apps:")
    lines.extend(_format_app_line(i, app) for i, app in enumerate(snapshot.top_battery_apps(limit), 1))
    lines.append("Top data apps:")
    lines.extend(_format_app_line(i, app) for i, app in enumerate(snapshot.top_data_apps(limit), 1))
    return "\n".join(lines)
