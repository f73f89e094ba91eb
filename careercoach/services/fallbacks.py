"""Static substitutes used when model output cannot be validated."""

from __future__ import annotations

from typing import Any, Dict, List


INDUSTRY_INSIGHTS_FALLBACK: Dict[str, Any] = {
	"salaryRanges": [
		{"role": "Entry Level", "min": 40000, "max": 60000, "median": 50000, "location": "General"},
		{"role": "Mid Level", "min": 60000, "max": 90000, "median": 75000, "location": "General"},
		{"role": "Senior Level", "min": 90000, "max": 130000, "median": 110000, "location": "General"},
	],
	"growthRate": 5.0,
	"demandLevel": "Medium",
	"topSkills": ["Communication", "Problem Solving", "Technical Skills"],
	"marketOutlook": "Neutral",
	"keyTrends": ["Digital Transformation", "Remote Work", "Skill Development"],
	"recommendedSkills": ["Data Analysis", "Project Management", "Leadership"],
}


QUIZ_FALLBACK: Dict[str, List[Dict[str, Any]]] = {
	"questions": [
		{
			"question": "Which practice best helps a team catch defects early in development?",
			"options": ["Code review before merging", "Testing only before release", "Skipping documentation", "Deploying directly to production"],
			"correctAnswer": "Code review before merging",
			"explanation": "Reviewing changes before they are merged surfaces defects while they are still cheap to fix.",
			"difficulty": "easy",
			"category": "Best Practices",
		},
		{
			"question": "What is the primary purpose of version control?",
			"options": ["Tracking and managing changes over time", "Compiling source code", "Encrypting files", "Monitoring server load"],
			"correctAnswer": "Tracking and managing changes over time",
			"explanation": "Version control records every change so work can be reviewed, shared and rolled back.",
			"difficulty": "easy",
			"category": "Core Concepts",
		},
		{
			"question": "A stakeholder asks for a feature late in a sprint. What is the most effective first step?",
			"options": ["Clarify the requirement and its priority", "Start coding immediately", "Decline without discussion", "Add it silently to the release"],
			"correctAnswer": "Clarify the requirement and its priority",
			"explanation": "Understanding scope and priority lets the team make an informed trade-off with the stakeholder.",
			"difficulty": "medium",
			"category": "Problem Solving",
		},
		{
			"question": "Which metric best shows whether a process change improved delivery speed?",
			"options": ["Lead time from request to delivery", "Number of meetings held", "Lines of code written", "Size of the team"],
			"correctAnswer": "Lead time from request to delivery",
			"explanation": "Lead time directly measures how long work takes to reach users, before and after the change.",
			"difficulty": "medium",
			"category": "Industry Trends",
		},
		{
			"question": "Two services disagree about the state of a shared record after a network partition. Which approach restores consistency most safely?",
			"options": ["Reconcile using an agreed source of truth", "Keep whichever write arrived last on each side", "Delete the record on both sides", "Ignore the conflict until users report it"],
			"correctAnswer": "Reconcile using an agreed source of truth",
			"explanation": "An explicit source of truth gives a deterministic reconciliation rule instead of silently losing data.",
			"difficulty": "hard",
			"category": "Problem Solving",
		},
	]
}


IMPROVEMENT_TIP_FALLBACK = (
	"Review the core concepts behind the questions you found tricky and practice applying them "
	"to real scenarios; steady, focused practice will sharpen your results quickly."
)


IMPROVED_TEXT_FALLBACK = (
	"Delivered measurable results by leading key initiatives, collaborating across teams "
	"and continuously improving processes."
)
