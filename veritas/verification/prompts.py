FACT_CHECKER_SYSTEM_PROMPT = "You are a professional fact-checker. Always respond with valid JSON only."

VERIFY_STATEMENT_USER_PROMPT = """As a fact-checking expert, analyze this statement for accuracy:

Statement: "{statement}"
Speaker: {speaker}
Date: {statement_date}
Source: {source_url}

Please provide:
1. Verification Status: VERIFIED, UNVERIFIED, or DISPUTED
2. Confidence Level: HIGH, MEDIUM, or LOW
3. Key Facts: List 2-3 key factual claims that can be verified
4. Issues Found: Any factual errors, misleading context, or concerns
5. Additional Context: Relevant background information
6. Recommendation: Whether this statement should be trusted

Format your response as JSON with these exact keys: status, confidence, keyFacts, issues, context, recommendation, reasoning
Example:
{{
  "status": "DISPUTED",
  "confidence": "MEDIUM",
  "keyFacts": ["..."],
  "issues": ["..."],
  "context": "...",
  "recommendation": "...",
  "reasoning": "..."
}}"""
