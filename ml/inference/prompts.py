"""Fixed prompt templates for the resume oracle

Templates interpolate fields with ``str.format``; literal JSON braces are
doubled.
"""

STRUCTURE_SYSTEM_PROMPT = (
    "You are an expert resume parser that extracts structured data from resumes. "
    "Always return valid JSON only."
)

STRUCTURE_USER_PROMPT = """Extract structured information from this resume text and return as JSON:

{resume_text}

Return the following JSON structure (omit fields if not found):
{{
  "personalInfo": {{
    "firstName": "First name",
    "lastName": "Last name",
    "email": "email@example.com",
    "phone": "Phone number",
    "location": "City, State/Country",
    "linkedin": "LinkedIn URL",
    "website": "Personal website URL"
  }},
  "summary": "Brief professional summary (2-3 sentences)",
  "skills": ["skill1", "skill2"],
  "experience": [
    {{
      "company": "Company Name",
      "title": "Job Title",
      "duration": "Start - End (e.g., Jan 2020 - Present)",
      "description": "Brief description of responsibilities"
    }}
  ],
  "education": [
    {{
      "institution": "University/School Name",
      "degree": "Degree Name",
      "field": "Field of Study (the subject, not the degree type)",
      "year": "Graduation Year"
    }}
  ],
  "certifications": ["Certification name only, never a skill sentence"],
  "languages": ["language1", "language2"]
}}

Return ONLY valid JSON, no additional text."""

VALIDATE_SYSTEM_PROMPT = (
    "You are a recruitment screening assistant that judges whether a document is a "
    "genuine resume or CV. Always return valid JSON only."
)

VALIDATE_USER_PROMPT = """Decide whether the following document is a real resume/CV written by a job applicant,
and rate its overall quality as a resume.

Treat as NOT a resume: cover letters alone, invoices, marketing emails, forms, random text,
placeholder templates (e.g. "John Doe", "Lorem ipsum"), or documents with no work/education history.

Document:
{resume_text}

Return JSON:
{{
  "isValid": true or false,
  "score": 0-100 (legitimacy and quality of the resume),
  "reason": "One or two sentences explaining the judgement"
}}

Return ONLY valid JSON, no additional text."""

SCORE_SYSTEM_PROMPT = (
    "You are an expert recruitment AI that scores candidates against job requirements. "
    "Always return valid JSON only."
)

SCORE_USER_PROMPT = """You are an expert recruitment AI. Analyze how well this candidate matches the job requirements.

Job Description:
{job_description}

Job Requirements:
{job_requirements}

Candidate Resume Summary:
{summary}

Skills: {skills}

Experience:
{experience}

Education:
{education}

Certifications: {certifications}

Languages: {languages}

Please provide a detailed scoring analysis in JSON format:
{{
  "overallScore": 0-100,
  "skillsMatch": 0-100,
  "experienceMatch": 0-100,
  "educationMatch": 0-100,
  "summary": "Brief summary of the analysis",
  "strengths": ["strength1", "strength2", "strength3"],
  "concerns": ["concern1", "concern2"],
  "recommendation": "strong_fit" | "good_fit" | "moderate_fit" | "poor_fit"
}}

Consider:
- How many required skills the candidate has
- Relevance of work experience
- Education level and field
- Overall fit for the role

Return ONLY valid JSON, no additional text."""

VISION_OCR_INSTRUCTIONS = (
    "These images are the pages of a scanned resume. Transcribe all readable text in "
    "reading order. Do not summarize, translate, or add commentary."
)
