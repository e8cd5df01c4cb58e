"""Instruction strings sent to the text generator."""

import re

from resume_builder_api.models import Job

INPUT_RESUME_MARKER = "*Input Resume*:"
EXAMPLE_OUTPUT_MARKER = "*Example Output*:"

ENHANCE_SYSTEM_PROMPT = (
    "You are an ATS optimization specialist and professional resume writer. "
    "You return plain text only."
)

ANALYZE_SYSTEM_PROMPT = (
    "You are an ATS (Applicant Tracking System) analyzer. You return a single JSON object."
)

ENHANCE_RESUME_PROMPT = """*Role*: Enhance the provided resume to improve ATS compatibility and professional presentation for general job applications, using the Role Title as reference.

*Instructions*:
1. **Preserve Factual Content**: Do not modify personal info (name, email, phone, LinkedIn), education (degrees, institutions, years), work experience (companies, roles, durations, headings), certifications (names, issuers, years), skills, hobbies or any other factual detail.
2. **Correct Grammar**: Fix grammatical errors and improve sentence clarity while keeping the original meaning.
3. **Add ATS Keywords**: Naturally include general ATS-friendly keywords (e.g., leadership, teamwork, project management) that fit the resume's context, without inventing skills or experience.
4. **Professional Tone**: Rephrase bullet points and summaries with action verbs, applying the STAR method (Situation, Task, Action, Result) where it fits, without altering facts.
5. **Quantify Achievements**: Add realistic quantities (e.g., "improved performance by 15%") only where the existing content implies them.
6. **Maintain Structure**: Keep every original section header and the content structure exactly as provided.
7. **Do Not Add Sections**: Enhance existing sections only.

*Output Format Requirements*:
- Plain text only (no markdown, JSON, or code blocks).
- Use the exact section headers of the input resume (e.g., "Personal Info", "Experience").
- Use '|' as the field separator (e.g., role|company|duration).
- Start bullet points with '*-' (e.g., *- description text).
- Separate sections with exactly two newlines.
- Include every original section, even if unchanged.
- Write Personal Info as key-value pairs (e.g., Name: John Doe).

{input_marker}
{resume_text}

{example_marker}
Personal Info
Name: John Doe
Email: john.doe@example.com
Phone: 123-456-7890
LinkedIn: linkedin.com/in/johndoe

Professional Summary
Results-driven professional with expertise in software development and team collaboration.

Technical Skills
*- JavaScript
*- React

Experience
Software Developer|Tech Corp|01/2022 - Present
*- Developed scalable web applications using JavaScript, enhancing user experience by 15%.

Education
B.S. Computer Science|State University|2021

Certifications
AWS Certified Developer|Amazon|2023

Projects
E-Commerce Platform|Designed a scalable platform, improving transaction efficiency|github.com/johndoe/ecommerce

Soft Skills
*- Communication
*- Teamwork

Languages
Spanish|Fluent|90

Hobbies
*- Reading

Role Title
Software Developer

Additional Fields
Awards
*- Employee of the Year|2023
"""

ANALYZE_RESUME_PROMPT = """Analyze the following resume against the job profile for the {profile} position. The job requires these key skills: {skills}.

Experience Level Context: Adjust the analysis for a {experience_level} candidate.
Industry Context: This {industry} role requires industry-specific considerations.

Evaluate the resume for:
- Keyword alignment with job requirements
- ATS-friendly formatting
- Content relevance and completeness
- Professional presentation

Quality Standards:
- Give a realistic ATS score
- Include only genuinely relevant missing keywords
- Offer 3-5 specific, actionable suggestions
- Focus on professional qualifications only

Return the analysis as JSON with this structure:
{{
  "atsScore": <number between 0 and 100>,
  "missingKeywords": [<missing keywords from the job requirements>],
  "suggestions": [<3-5 specific, actionable suggestions>]
}}

Resume text:
{resume_text}
"""

_INPUT_RESUME_PATTERN = re.compile(
    re.escape(INPUT_RESUME_MARKER) + r"\n(.*?)\n\n" + re.escape(EXAMPLE_OUTPUT_MARKER),
    re.DOTALL,
)


def build_enhance_prompt(resume_text: str) -> str:
    return ENHANCE_RESUME_PROMPT.format(
        input_marker=INPUT_RESUME_MARKER,
        example_marker=EXAMPLE_OUTPUT_MARKER,
        resume_text=resume_text.strip(),
    )


def build_analyze_prompt(
    job: Job,
    experience_level: str,
    industry: str,
    resume_text: str,
) -> str:
    return ANALYZE_RESUME_PROMPT.format(
        profile=job.profile,
        skills=", ".join(job.skills),
        experience_level=experience_level,
        industry=industry,
        resume_text=resume_text.strip(),
    )


def extract_input_resume(prompt: str) -> str | None:
    """Return the resume embedded in an enhancement prompt, if any."""
    match = _INPUT_RESUME_PATTERN.search(prompt)
    return match.group(1) if match else None
