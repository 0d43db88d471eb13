"""
extraction/prompts.py
Prompt template for SoF extraction.
PromptTemplate (f-string) syntax: literal JSON braces are doubled.
"""

SOF_EXTRACTION_TEMPLATE = """You are an expert maritime logistics analyst. Analyse the Statement of Fact (SoF) below
and return structured data. Accuracy and completeness matter more than brevity.

1. EVENTS
Read the SoF line by line. Every row that carries a date and/or time is an event; never skip one.
For each event return:
{{
  "event": "verbatim text from the remarks column, not summarised",
  "category": "one of Arrival | Cargo Operations | Departure | Delays | Stoppages | Bunkering | Anchorage | Other",
  "startTime": "YYYY-MM-DD HH:MM",
  "endTime": "YYYY-MM-DD HH:MM (same as startTime for a point-in-time event)",
  "duration": "e.g. 2h 30m, 15m, or 0m for a point-in-time event",
  "status": "e.g. Completed, In Progress, Delayed, or Not Mentioned",
  "remark": "any additional remark for this row"
}}
Sort events chronologically by startTime.

2. MASTER DETAILS (include when present, otherwise omit)
vesselName, portOfCall, berth, voyageNumber, cargoDescription, cargoQuantity, noticeOfReadinessTendered.

3. LAYTIME
Allowed laytime is {allowed_laytime} unless the SoF states otherwise.
Demurrage rate is {currency}{demurrage_rate} per day, prorated, unless the SoF states otherwise.
Return "laytimeCalculation" with totalLaytime, allowedLaytime, timeSaved, demurrage, demurrageCost and
"laytimeEvents": a list of {{"event", "startTime", "endTime", "duration", "isCounted", "reason"}}
where reason explains why the event does or does not count (e.g. "Cargo ops count", "Rain delay excluded").

4. SUMMARY
"eventsSummary": a short bulleted summary with total time in port, time on cargo operations and
time lost to delays or stoppages (with reasons).

Only vesselName and events are mandatory. If you cannot determine both, return exactly
{{"error": "Unable to extract vessel name and events"}}

Return ONLY a valid JSON object. No explanation, no markdown, no code fences.

SoF content:
{sof_content}
"""
