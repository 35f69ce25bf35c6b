# File: backend/pdf_scraper/llm/prompts.py
# Instruction texts sent to the model for résumé extraction.

RESUME_JSON_STRUCTURE = """{
  "profile": {
    "name": "string",
    "surname": "string",
    "email": "string",
    "headline": "string",
    "professionalSummary": "string",
    "linkedIn": "string",
    "website": "string",
    "country": "string",
    "city": "string",
    "relocation": boolean,
    "remote": boolean
  },
  "workExperiences": [
    {
      "jobTitle": "string",
      "employmentType": "FULL_TIME|PART_TIME|INTERNSHIP|CONTRACT",
      "locationType": "ONSITE|REMOTE|HYBRID",
      "company": "string",
      "startMonth": number or null,
      "startYear": number or null,
      "endMonth": number or null,
      "endYear": number or null,
      "current": boolean,
      "description": "string"
    }
  ],
  "educations": [
    {
      "school": "string",
      "degree": "HIGH_SCHOOL|ASSOCIATE|BACHELOR|MASTER|DOCTORATE",
      "major": "string",
      "startYear": number or null,
      "endYear": number or null,
      "current": boolean,
      "description": "string"
    }
  ],
  "skills": ["string"],
  "licenses": [
    {"name": "string", "issuer": "string", "issueYear": number or null, "description": "string"}
  ],
  "languages": [
    {"language": "string", "level": "BEGINNER|INTERMEDIATE|ADVANCED|NATIVE"}
  ],
  "achievements": [
    {"title": "string", "organization": "string", "achieveDate": "string", "description": "string"}
  ],
  "publications": [
    {"title": "string", "publisher": "string", "publicationDate": "string", "publicationUrl": "string", "description": "string"}
  ],
  "honors": [
    {"title": "string", "issuer": "string", "issueMonth": number or null, "issueYear": number or null, "description": "string"}
  ]
}"""

EXTRACTION_RULES = """Rules:
- Use empty strings "" for missing text fields
- Use null for missing numbers and dates
- Use empty arrays [] for missing lists
- Do not add extra fields or change the structure
- Months are numbers 1-12, years are four-digit numbers
- For current positions set "current": true and leave end dates null
- Infer employment type from context (FULL_TIME if not specified)
- Infer location type from context (ONSITE if not specified)
- Infer degree level from context (BACHELOR if not specified)
- Infer language level from context (INTERMEDIATE if not specified)
- Extract skills as individual strings, not comma-separated text
- Extract contact information from headers and footers
- Handle multilingual content
- Return ONLY the JSON object with no markdown, code fences or prose"""

DOCUMENT_EXTRACTION_PROMPT = f"""You are a JSON generator that extracts resume information from PDF documents.
Analyze the entire document and return ONLY a JSON object matching this exact structure:

{RESUME_JSON_STRUCTURE}

{EXTRACTION_RULES}"""

PAGE_EXTRACTION_PROMPT = f"""You are a JSON generator that extracts resume information from a single page image of a resume.
The resume may span several pages; extract only what is visible on this page and leave everything else empty.
Return ONLY a JSON object matching this exact structure:

{RESUME_JSON_STRUCTURE}

{EXTRACTION_RULES}
- Pay attention to visual layout, section headers, bullet points and tables"""

JSON_RETRY_SUFFIX = (
    "\n\nIMPORTANT: Return ONLY a valid JSON object without any markdown formatting or code blocks. "
    "If the previous output was invalid, strictly follow the schema now."
)
