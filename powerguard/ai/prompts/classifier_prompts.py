"""
Classifier Prompts - Templates for categorizing resource queries.

These prompts turn a free-text question such as:
  "Notify me when TikTok uses more than 2GB of data"

Into a structured classification:
  {
    "category": 4,
    "extracted_params": {
      "apps": ["TikTok"],
      "resource_type": ["data"],
      "thresholds": {"data": 2000},
      "condition_type": "exceeds_usage"
    }
  }

Prompt Engineering Techniques:
=============================
1. Closed taxonomy (exactly four categories, numbered 1-4)
2. Schema enforcement (snake_case wire names, omit what is not mentioned)
3. Normalization rules (data in MB, prefer hours)
4. Few-shot examples per category
"""

# ---------------------------------------------------------------------------
# CLASSIFIER SYSTEM PROMPT
# ---------------------------------------------------------------------------

CLASSIFIER_SYSTEM_PROMPT = """You analyze user queries about battery and data usage on mobile devices.

Your task is to:
1. Categorize the query into exactly one of four categories
2. Extract every parameter that is explicitly mentioned or clearly implied
3. Return a single JSON object and nothing else

CRITICAL RULES:
1. Any query asking to be notified, alerted or warned is category 4, even if it also asks a question
2. "Can I...", "Will I...", "Is there enough..." questions are category 2
3. Convert ALL data values to MB (2GB = 2000MB)
4. Omit any field that is not relevant to the query"""


# ---------------------------------------------------------------------------
# CLASSIFIER PROMPT
# ---------------------------------------------------------------------------

CLASSIFIER_PROMPT = """Categories:
1. Information Queries (usage statistics, rankings, historical data)
2. Predictive Queries (resource availability estimates)
3. Optimization Requests (resource management recommendations)
4. Monitoring Triggers (threshold-based alerts)

Return a JSON object with:
- category: number 1-4
- extracted_params: {{
    apps: array of specific apps mentioned
    app_categories: array of app types (e.g. "streaming", "messaging", "games", "navigation")
    duration: {{"value": number, "unit": "minutes"|"hours"|"days"}}
    time_period: {{"value": number, "unit": "hour"|"day"|"week"|"month"}}
    resource_type: array of "battery" and/or "data"
    thresholds: {{"battery": percentage 0-100, "data": MB value}}
    limit: number (for top-N queries)
    context: string (e.g. "traveling", "commute", "gaming", "background")
    priority_apps: array of apps that must keep running
    priority_app_categories: array of app categories that must keep running
    condition_type: "while_using"|"exceeds_usage"|"reaches_threshold"
  }}

EXAMPLES:

Query: "Show me top 5 battery-draining apps from last week"
{{"category": 1, "extracted_params": {{"resource_type": ["battery"], "limit": 5, "time_period": {{"value": 1, "unit": "week"}}}}}}

Query: "Which apps are draining my battery the most?"
{{"category": 1, "extracted_params": {{"resource_type": ["battery"], "limit": 3}}}}

Query: "How much data has YouTube used this week?"
{{"category": 1, "extracted_params": {{"apps": ["YouTube"], "resource_type": ["data"], "time_period": {{"value": 1, "unit": "week"}}}}}}

Query: "What's using my battery in the background?"
{{"category": 1, "extracted_params": {{"resource_type": ["battery"], "limit": 3, "context": "background"}}}}

Query: "Can I watch Netflix and use WhatsApp for the next 3 hours with current battery?"
{{"category": 2, "extracted_params": {{"apps": ["Netflix", "WhatsApp"], "app_categories": ["streaming", "messaging"], "duration": {{"value": 3, "unit": "hours"}}, "resource_type": ["battery"]}}}}

Query: "I'm traveling for 8 hours, save battery but keep Maps and Gmail running"
{{"category": 3, "extracted_params": {{"duration": {{"value": 8, "unit": "hours"}}, "resource_type": ["battery"], "context": "traveling", "priority_apps": ["Maps", "Gmail"], "priority_app_categories": ["navigation", "email"]}}}}

Query: "Notify me when TikTok uses more than 2GB of data"
{{"category": 4, "extracted_params": {{"apps": ["TikTok"], "app_categories": ["social"], "resource_type": ["data"], "thresholds": {{"data": 2000}}, "condition_type": "exceeds_usage"}}}}

Query: "Alert me if battery drops to 15% while gaming"
{{"category": 4, "extracted_params": {{"app_categories": ["games"], "resource_type": ["battery"], "thresholds": {{"battery": 15}}, "condition_type": "while_using"}}}}

Important Notes:
1. Convert all data values to MB (e.g., 2GB = 2000MB)
2. Normalize time units when possible (prefer hours over minutes unless precision is needed)
3. Identify app categories even when specific apps are mentioned
4. For monitoring, always specify condition_type

User query: "{query}"
"""
