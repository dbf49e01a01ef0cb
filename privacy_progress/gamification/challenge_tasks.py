"""
30-Day Privacy Plan - Task Template

The fixed catalog every challenge is generated from. Content is identical for
every user and every restart; only the completion flags are per challenge.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from privacy_progress.models.challenge import (
    CHALLENGE_DAYS,
    DailyTask,
    TaskCategory,
    TaskDifficulty,
    TaskResource,
)


@dataclass(frozen=True)
class TaskTemplate:
    """Template row for one daily task"""
    id: str
    day: int
    title: str
    description: str
    category: TaskCategory
    difficulty: TaskDifficulty
    estimated_time: str
    resources: Tuple[Tuple[str, str, str], ...] = field(default_factory=tuple)  # (title, url, type)
    tips: Tuple[str, ...] = field(default_factory=tuple)

    def build(self) -> DailyTask:
        return DailyTask(
            id=self.id,
            day=self.day,
            title=self.title,
            description=self.description,
            category=self.category,
            difficulty=self.difficulty,
            estimated_time=self.estimated_time,
            resources=[TaskResource(title=t, url=u, type=k) for t, u, k in self.resources],
            tips=list(self.tips),
        )


# ============================================
# Template (one task per day)
# ============================================

CHALLENGE_TEMPLATE: List[TaskTemplate] = [
    # ========== WEEK 1: Foundations ==========
    TaskTemplate(
        id="day-1-password-audit",
        day=1,
        title="Audit Your Passwords",
        description="Review all your passwords and identify weak or reused ones",
        category=TaskCategory.PASSWORD,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="20 min",
        resources=(
            ("Password Security Guide", "/resources/guides/password-management", "guide"),
            ("Password Manager Comparison", "/resources/tools/password-managers", "tool"),
        ),
        tips=(
            "Start with your most important accounts (email, banking)",
            "Use a password manager to generate strong passwords",
            "Enable 2FA wherever possible",
        ),
    ),
    TaskTemplate(
        id="day-2-browser-cleanup",
        day=2,
        title="Clean Up Your Browser",
        description="Remove unnecessary extensions, clear browsing data, and review permissions",
        category=TaskCategory.BROWSER,
        difficulty=TaskDifficulty.EASY,
        estimated_time="10 min",
        resources=(("Browser Privacy Settings", "/resources/guides/browser-privacy", "guide"),),
        tips=(
            "Remove extensions you no longer use",
            "Clear cookies and browsing history",
            "Review which sites can access your location, camera, etc.",
        ),
    ),
    TaskTemplate(
        id="day-3-social-privacy-check",
        day=3,
        title="Review Social Media Privacy",
        description="Check and update privacy settings on your social media accounts",
        category=TaskCategory.SOCIAL,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="15 min",
        resources=(("Social Media Privacy Guide", "/resources/guides/social-media-privacy", "guide"),),
        tips=(
            "Make your profile private where possible",
            "Review who can see your posts",
            "Check app permissions and third-party access",
        ),
    ),
    TaskTemplate(
        id="day-4-device-permissions",
        day=4,
        title="Review Device Permissions",
        description="Audit app permissions on your phone and computer",
        category=TaskCategory.DEVICE,
        difficulty=TaskDifficulty.EASY,
        estimated_time="15 min",
        resources=(("Mobile Privacy Settings", "/resources/guides/mobile-privacy", "guide"),),
        tips=(
            "Remove unnecessary location permissions",
            "Review camera and microphone access",
            "Check which apps can access your contacts",
        ),
    ),
    TaskTemplate(
        id="day-5-two-factor-setup",
        day=5,
        title="Enable Two-Factor Authentication",
        description="Set up 2FA on your most important accounts",
        category=TaskCategory.PASSWORD,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="25 min",
        resources=(("2FA Setup Guide", "/resources/guides/two-factor-authentication", "guide"),),
        tips=(
            "Start with email, banking, and social media",
            "Use an authenticator app instead of SMS when possible",
            "Save backup codes in a secure place",
        ),
    ),
    TaskTemplate(
        id="day-6-data-inventory",
        day=6,
        title="Create Personal Data Inventory",
        description="List all the personal data you share online",
        category=TaskCategory.DATA,
        difficulty=TaskDifficulty.HARD,
        estimated_time="30 min",
        resources=(("Personal Data Inventory Tool", "/resources/tools/personal-data-inventory", "tool"),),
        tips=(
            "Include social media, shopping sites, apps",
            "Note what data each service collects",
            "Consider which data sharing is necessary",
        ),
    ),
    TaskTemplate(
        id="day-7-privacy-policy-review",
        day=7,
        title="Review Privacy Policies",
        description="Read privacy policies of your most-used services",
        category=TaskCategory.EDUCATION,
        difficulty=TaskDifficulty.HARD,
        estimated_time="20 min",
        resources=(("Understanding Privacy Policies", "/resources/guides/privacy-policies", "guide"),),
        tips=(
            "Focus on data collection and sharing sections",
            "Look for opt-out options",
            "Note any concerning data practices",
        ),
    ),

    # ========== WEEK 2: Tools ==========
    TaskTemplate(
        id="day-8-vpn-setup",
        day=8,
        title="Set Up VPN",
        description="Install and configure a VPN for secure browsing",
        category=TaskCategory.TOOLS,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="15 min",
        resources=(("VPN Setup Guide", "/resources/guides/vpn-setup", "guide"),),
        tips=(
            "Choose a reputable VPN provider",
            "Enable VPN for public WiFi",
            "Test your IP address before and after",
        ),
    ),
    TaskTemplate(
        id="day-9-ad-blocker",
        day=9,
        title="Install Ad Blocker",
        description="Set up ad blocking to reduce tracking",
        category=TaskCategory.BROWSER,
        difficulty=TaskDifficulty.EASY,
        estimated_time="10 min",
        resources=(("Ad Blocker Guide", "/resources/guides/ad-blocking", "guide"),),
        tips=(
            "Use uBlock Origin or similar",
            "Configure custom filter lists",
            "Test on various websites",
        ),
    ),
    TaskTemplate(
        id="day-10-data-broker-removal",
        day=10,
        title="Remove Data from Brokers",
        description="Start removing your data from data broker sites",
        category=TaskCategory.DATA,
        difficulty=TaskDifficulty.HARD,
        estimated_time="45 min",
        resources=(("Data Broker Removal Tool", "/resources/tools/data-broker-removal", "tool"),),
        tips=(
            "Start with the biggest brokers first",
            "Keep records of your requests",
            "Follow up if removal is denied",
        ),
    ),
    TaskTemplate(
        id="day-11-privacy-focused-search",
        day=11,
        title="Switch to Privacy Search",
        description="Change your default search engine to a privacy-focused one",
        category=TaskCategory.BROWSER,
        difficulty=TaskDifficulty.EASY,
        estimated_time="5 min",
        resources=(("Privacy Search Engines", "/resources/guides/privacy-search", "guide"),),
        tips=(
            "Try DuckDuckGo or Startpage",
            "Update all your browsers",
            "Test search quality vs Google",
        ),
    ),
    TaskTemplate(
        id="day-12-app-permissions-cleanup",
        day=12,
        title="Clean Up App Permissions",
        description="Remove unnecessary permissions from mobile apps",
        category=TaskCategory.DEVICE,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="20 min",
        resources=(("App Permission Guide", "/resources/guides/app-permissions", "guide"),),
        tips=(
            "Review each app individually",
            "Remove location access from non-essential apps",
            "Check background app refresh settings",
        ),
    ),
    TaskTemplate(
        id="day-13-privacy-browser",
        day=13,
        title="Try Privacy Browser",
        description="Test a privacy-focused browser like Firefox or Brave",
        category=TaskCategory.BROWSER,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="15 min",
        resources=(("Privacy Browser Comparison", "/resources/guides/privacy-browsers", "guide"),),
        tips=(
            "Try Firefox with privacy settings",
            "Test Brave browser",
            "Compare tracking protection",
        ),
    ),
    TaskTemplate(
        id="day-14-digital-detox",
        day=14,
        title="Digital Detox Day",
        description="Take a break from social media and track your usage",
        category=TaskCategory.EDUCATION,
        difficulty=TaskDifficulty.HARD,
        estimated_time="All day",
        resources=(("Digital Wellness Guide", "/resources/guides/digital-wellness", "guide"),),
        tips=(
            "Delete social media apps temporarily",
            "Use screen time tracking",
            "Focus on offline activities",
        ),
    ),

    # ========== WEEK 3: Deeper Protection ==========
    TaskTemplate(
        id="day-15-email-privacy",
        day=15,
        title="Secure Your Email",
        description="Set up email encryption and secure practices",
        category=TaskCategory.PRIVACY_SETTINGS,
        difficulty=TaskDifficulty.HARD,
        estimated_time="30 min",
        resources=(("Email Security Guide", "/resources/guides/email-security", "guide"),),
        tips=(
            "Enable PGP encryption if possible",
            "Use aliases for different purposes",
            "Review email forwarding rules",
        ),
    ),
    TaskTemplate(
        id="day-16-cloud-backup-review",
        day=16,
        title="Review Cloud Backups",
        description="Audit what you store in cloud services",
        category=TaskCategory.DATA,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="20 min",
        resources=(("Cloud Storage Privacy", "/resources/guides/cloud-privacy", "guide"),),
        tips=(
            "Review what files are synced",
            "Enable encryption for sensitive files",
            "Consider local backup alternatives",
        ),
    ),
    TaskTemplate(
        id="day-17-smart-home-privacy",
        day=17,
        title="Smart Home Privacy Check",
        description="Review privacy settings on smart home devices",
        category=TaskCategory.DEVICE,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="25 min",
        resources=(("Smart Home Privacy", "/resources/guides/smart-home-privacy", "guide"),),
        tips=(
            "Disable unnecessary data collection",
            "Review voice recording settings",
            "Update device firmware",
        ),
    ),
    TaskTemplate(
        id="day-18-privacy-laws-research",
        day=18,
        title="Learn Privacy Laws",
        description="Research privacy laws that protect you",
        category=TaskCategory.EDUCATION,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="20 min",
        resources=(
            ("Privacy Laws Overview", "/privacy-laws", "guide"),
            ("GDPR Guide", "/privacy-laws/gdpr", "guide"),
        ),
        tips=(
            "Learn about GDPR if you're in EU",
            "Understand CCPA if you're in California",
            "Know your rights to data deletion",
        ),
    ),
    TaskTemplate(
        id="day-19-password-manager-advanced",
        day=19,
        title="Advanced Password Manager",
        description="Set up advanced password manager features",
        category=TaskCategory.PASSWORD,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="20 min",
        resources=(("Advanced Password Management", "/resources/guides/advanced-passwords", "guide"),),
        tips=(
            "Set up password sharing for family",
            "Configure emergency access",
            "Enable breach monitoring",
        ),
    ),
    TaskTemplate(
        id="day-20-social-media-audit",
        day=20,
        title="Deep Social Media Audit",
        description="Comprehensive review of all social media accounts",
        category=TaskCategory.SOCIAL,
        difficulty=TaskDifficulty.HARD,
        estimated_time="40 min",
        resources=(("Social Media Audit Checklist", "/resources/checklists/social-media-audit", "guide"),),
        tips=(
            "Review old posts and photos",
            "Check tagged content",
            "Audit friend/follower lists",
        ),
    ),
    TaskTemplate(
        id="day-21-privacy-tools-exploration",
        day=21,
        title="Explore Privacy Tools",
        description="Try additional privacy tools and services",
        category=TaskCategory.TOOLS,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="30 min",
        resources=(("Privacy Tools Directory", "/resources/tools", "tool"),),
        tips=(
            "Try encrypted messaging apps",
            "Test privacy-focused email services",
            "Explore decentralized alternatives",
        ),
    ),

    # ========== WEEK 4+: Habits ==========
    TaskTemplate(
        id="day-22-data-portability",
        day=22,
        title="Exercise Data Portability",
        description="Download your data from major services",
        category=TaskCategory.DATA,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="25 min",
        resources=(("Data Portability Guide", "/resources/guides/data-portability", "guide"),),
        tips=(
            "Download data from Google, Facebook, etc.",
            "Review what data they have",
            "Consider deleting unnecessary data",
        ),
    ),
    TaskTemplate(
        id="day-23-privacy-monitoring",
        day=23,
        title="Set Up Privacy Monitoring",
        description="Configure tools to monitor your privacy",
        category=TaskCategory.TOOLS,
        difficulty=TaskDifficulty.HARD,
        estimated_time="35 min",
        resources=(("Privacy Monitoring Tools", "/resources/tools/privacy-monitoring", "tool"),),
        tips=(
            "Set up breach notifications",
            "Monitor data broker listings",
            "Track privacy policy changes",
        ),
    ),
    TaskTemplate(
        id="day-24-family-privacy",
        day=24,
        title="Family Privacy Discussion",
        description="Discuss privacy with family members",
        category=TaskCategory.EDUCATION,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="30 min",
        resources=(("Family Privacy Guide", "/resources/guides/family-privacy", "guide"),),
        tips=(
            "Share privacy best practices",
            "Set up family password manager",
            "Discuss online safety for children",
        ),
    ),
    TaskTemplate(
        id="day-25-privacy-automation",
        day=25,
        title="Automate Privacy Tasks",
        description="Set up automated privacy protections",
        category=TaskCategory.TOOLS,
        difficulty=TaskDifficulty.HARD,
        estimated_time="40 min",
        resources=(("Privacy Automation Guide", "/resources/guides/privacy-automation", "guide"),),
        tips=(
            "Set up automatic data deletion",
            "Configure privacy-focused browser settings",
            "Automate security updates",
        ),
    ),
    TaskTemplate(
        id="day-26-privacy-advocacy",
        day=26,
        title="Become a Privacy Advocate",
        description="Share privacy knowledge with others",
        category=TaskCategory.EDUCATION,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="20 min",
        resources=(("Privacy Advocacy Guide", "/resources/guides/privacy-advocacy", "guide"),),
        tips=(
            "Share privacy tips on social media",
            "Help friends with privacy settings",
            "Support privacy-focused organizations",
        ),
    ),
    TaskTemplate(
        id="day-27-privacy-audit",
        day=27,
        title="Comprehensive Privacy Audit",
        description="Conduct a full privacy audit of your digital life",
        category=TaskCategory.DATA,
        difficulty=TaskDifficulty.HARD,
        estimated_time="60 min",
        resources=(("Privacy Audit Checklist", "/resources/checklists/privacy-audit", "guide"),),
        tips=(
            "Review all accounts and services",
            "Check for data breaches",
            "Update privacy settings everywhere",
        ),
    ),
    TaskTemplate(
        id="day-28-privacy-planning",
        day=28,
        title="Create Privacy Maintenance Plan",
        description="Develop a plan for ongoing privacy maintenance",
        category=TaskCategory.EDUCATION,
        difficulty=TaskDifficulty.MEDIUM,
        estimated_time="25 min",
        resources=(("Privacy Maintenance Guide", "/resources/guides/privacy-maintenance", "guide"),),
        tips=(
            "Schedule regular privacy reviews",
            "Set up recurring security checks",
            "Plan for privacy policy updates",
        ),
    ),
    TaskTemplate(
        id="day-29-privacy-celebration",
        day=29,
        title="Celebrate Your Progress",
        description="Review your achievements and celebrate your privacy journey",
        category=TaskCategory.EDUCATION,
        difficulty=TaskDifficulty.EASY,
        estimated_time="15 min",
        resources=(("Privacy Achievement Guide", "/resources/guides/privacy-achievements", "guide"),),
        tips=(
            "Review all completed tasks",
            "Share your progress",
            "Plan for continued privacy protection",
        ),
    ),
    TaskTemplate(
        id="day-30-privacy-master",
        day=30,
        title="Become a Privacy Master",
        description="Complete your 30-day privacy transformation",
        category=TaskCategory.EDUCATION,
        difficulty=TaskDifficulty.EASY,
        estimated_time="20 min",
        resources=(("Privacy Master Certificate", "/resources/certificates/privacy-master", "guide"),),
        tips=(
            "Take a final privacy assessment",
            "Share your transformation story",
            "Commit to ongoing privacy protection",
        ),
    ),
]

TEMPLATE_BY_ID = {template.id: template for template in CHALLENGE_TEMPLATE}

if len(TEMPLATE_BY_ID) != len(CHALLENGE_TEMPLATE):
    raise ValueError("Duplicate task ids in challenge template")
if {t.day for t in CHALLENGE_TEMPLATE} != set(range(1, CHALLENGE_DAYS + 1)):
    raise ValueError("Challenge template must cover every day")


def generate_daily_tasks() -> List[DailyTask]:
    """Fresh, uncompleted tasks for a new challenge"""
    return [template.build() for template in CHALLENGE_TEMPLATE]
