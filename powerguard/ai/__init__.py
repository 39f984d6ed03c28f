"""
AI Module - Query understanding and recommendation for PowerGuard.

Turns a natural-language question about battery or data into a typed
AnalysisResult that an effector can act on.

Architecture Overview:
=====================

    query ──▶ IntentClassifier ──▶ QueryAnalysis
                                        │
              TelemetrySource ──▶ DeviceSnapshot
                                        │
                                        ▼
                         RecommendationSynthesizer ──(fail/timeout)──▶ OfflineAnalyzer
                                        │                                    │
                                        ▼                                    │
                              ResponseNormalizer                             │
                                        │                                    │
                                        └──────────▶ AnalysisResult ◀────────┘

Module Structure:
================
- providers/:      language-model backends (Gemini, OpenAI, Anthropic, offline)
- intent/:         four-category classification and keyword rules
- prompts/:        classifier and recommendation prompt templates
- recommendation/: category-specific synthesis calls
- response/:       payload parsing, allow-list filtering, deterministic rules
- actions/:        the actionable allow-list
- schemas/:        Insight, Actionable, AnalysisResult
- pipeline/:       orchestrator and offline fallback
- monitoring/:     structured logs and run metrics

Import submodules directly (powerguard.ai.pipeline.orchestrator, ...);
this package does not re-export them.
"""
