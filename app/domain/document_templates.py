"""Catalogue of standard project documents, grouped by delivery phase."""

from typing import List, Optional

from app.domain.entities import DocumentTemplate, TemplateCategory

PHASE_NAMES = [
    "Phase 0: Initiation",
    "Phase 1: Planning",
    "Phase 2: Design",
    "Phase 3: Development",
    "Phase 4: Testing",
    "Phase 5: Deployment",
    "Phase 6: Hypercare",
    "Phase 7: Closeout",
]

# (name, phase index, category, critical, description, typical owner,
#  estimated days, dependencies by name)
_CATALOGUE = [
    # Phase 0: Initiation & Vendor Selection
    (
        "Project Charter", 0, "strategic", True,
        "Formal project authorization document defining objectives, scope, and stakeholders",
        "Project Manager", 5, [],
    ),
    (
        "Business Case", 0, "strategic", True,
        "Justification for project investment including ROI and benefits analysis",
        "Business Owner", 7, [],
    ),
    (
        "Feasibility Study", 0, "strategic", False,
        "Technical, operational, and financial feasibility analysis",
        "Business Analyst", 10, [],
    ),
    (
        "Cost-Benefit Analysis", 0, "strategic", False,
        "Detailed analysis of project costs vs expected benefits",
        "Financial Analyst", 5, ["Business Case"],
    ),
    (
        "Initial Risk Assessment", 0, "governance", False,
        "High-level identification of project risks",
        "Project Manager", 3, [],
    ),
    (
        "RFI (Request for Information)", 0, "vendor", False,
        "Initial vendor information gathering document",
        "Procurement Team", 7, [],
    ),
    (
        "RFP (Request for Proposal)", 0, "vendor", True,
        "Formal vendor proposal request document",
        "Procurement Team", 14, ["RFI", "Business Case"],
    ),
    (
        "Vendor Evaluation Matrix", 0, "vendor", True,
        "Structured vendor comparison and scoring framework",
        "Procurement Team", 5, ["RFP"],
    ),
    (
        "Vendor Due Diligence Report", 0, "vendor", False,
        "Comprehensive vendor background and capability assessment",
        "Procurement Team", 10, [],
    ),
    (
        "Vendor Selection Justification", 0, "vendor", True,
        "Documented rationale for vendor selection decision",
        "Project Manager", 3, ["Vendor Evaluation Matrix"],
    ),
    (
        "Non-Disclosure Agreement (NDA)", 0, "contractual", True,
        "Legal agreement protecting confidential information",
        "Legal Team", 2, [],
    ),
    (
        "Confidentiality & Data Agreement (CDA)", 0, "contractual", False,
        "Data protection and confidentiality agreement",
        "Legal Team", 3, [],
    ),
    (
        "Master Service Agreement (MSA)", 0, "contractual", True,
        "Framework agreement defining general terms with vendor",
        "Legal Team", 7, ["NDA"],
    ),
    (
        "Statement of Work (SOW)", 0, "contractual", True,
        "Detailed scope, deliverables, and timeline agreement",
        "Project Manager", 10, ["MSA"],
    ),
    (
        "Service Level Agreement (SLA)", 0, "contractual", True,
        "Performance metrics and service expectations agreement",
        "Project Manager", 5, ["SOW"],
    ),
    (
        "Communication Plan", 0, "governance", False,
        "Stakeholder communication strategy and schedule",
        "Project Manager", 3, [],
    ),
    (
        "Vendor Onboarding Checklist", 0, "vendor", True,
        "Comprehensive vendor integration checklist",
        "Project Manager", 2, ["MSA", "SOW"],
    ),
    # Phase 1: Planning & Requirements (20 documents)
    (
        "Project Management Plan", 1, "strategic", True,
        "Comprehensive project execution plan",
        "Project Manager", 10, ["Project Charter"],
    ),
    (
        "Resource Management Plan", 1, "strategic", False,
        "Resource allocation and management strategy",
        "Project Manager", 5, [],
    ),
    (
        "Communication Management Plan", 1, "governance", False,
        "Detailed communication protocols and procedures",
        "Project Manager", 3, [],
    ),
    (
        "Risk Management Plan", 1, "governance", False,
        "Risk identification, assessment, and mitigation strategy",
        "Project Manager", 5, [],
    ),
    (
        "Quality Management Plan", 1, "quality", False,
        "Quality standards, processes, and assurance procedures",
        "Quality Manager", 5, [],
    ),
    (
        "Procurement Management Plan", 1, "governance", False,
        "Procurement processes and vendor management approach",
        "Procurement Team", 5, [],
    ),
    (
        "Business Requirements Document (BRD)", 1, "strategic", True,
        "Detailed business needs, objectives, and requirements",
        "Business Analyst", 15, ["Business Case"],
    ),
    (
        "Functional Requirements Specification (FRS)", 1, "technical", True,
        "Detailed functional requirements and specifications",
        "Business Analyst", 15, ["BRD"],
    ),
    (
        "Non-Functional Requirements (NFR)", 1, "technical", False,
        "Performance, security, scalability requirements",
        "Technical Architect", 7, ["FRS"],
    ),
    (
        "User Stories & Use Cases", 1, "technical", False,
        "Detailed user scenarios and system interactions",
        "Business Analyst", 10, ["BRD"],
    ),
    (
        "Requirements Traceability Matrix (RTM)", 1, "quality", True,
        "Requirements tracking and validation matrix",
        "Business Analyst", 5, ["FRS"],
    ),
    (
        "Vendor Project Plan (.mpp)", 1, "vendor", True,
        "Detailed vendor project schedule and task plan",
        "Vendor PM", 7, ["SOW"],
    ),
    (
        "Vendor Resource Plan", 1, "vendor", False,
        "Vendor resource allocation and availability plan",
        "Vendor PM", 3, [],
    ),
    (
        "Vendor RACI Matrix", 1, "vendor", False,
        "Vendor responsibility assignment matrix",
        "Vendor PM", 2, [],
    ),
    (
        "Stakeholder Register", 1, "governance", False,
        "Comprehensive list of project stakeholders",
        "Project Manager", 3, [],
    ),
    (
        "RACI Matrix", 1, "governance", True,
        "Responsibility assignment matrix for all activities",
        "Project Manager", 3, [],
    ),
    (
        "Change Management Plan", 1, "governance", False,
        "Change control and management procedures",
        "Project Manager", 5, [],
    ),
    (
        "Configuration Management Plan", 1, "technical", False,
        "Configuration item identification and control plan",
        "Configuration Manager", 5, [],
    ),
    (
        "Issue & Risk Log (Initial)", 1, "governance", False,
        "Initial risk and issue tracking register",
        "Project Manager", 2, [],
    ),
    (
        "Lessons Learned Register (Initial)", 1, "governance", False,
        "Document to capture lessons throughout project",
        "Project Manager", 1, [],
    ),
    # Phase 2: Design & Architecture (18 documents)
    (
        "Solution Architecture Document (SAD)", 2, "technical", True,
        "Comprehensive solution architecture blueprint",
        "Solution Architect", 15, ["FRS", "NFR"],
    ),
    (
        "Technical Design Document (TDD)", 2, "technical", True,
        "Detailed technical design specifications",
        "Technical Architect", 15, ["SAD"],
    ),
    (
        "High-Level Design (HLD)", 2, "technical", False,
        "System-level design and architecture overview",
        "Technical Architect", 10, ["SAD"],
    ),
    (
        "Low-Level Design (LLD)", 2, "technical", False,
        "Component-level detailed design",
        "Developer Lead", 10, ["HLD"],
    ),
    (
        "Integration Architecture Design", 2, "technical", False,
        "System integration patterns and interfaces",
        "Integration Architect", 10, ["SAD"],
    ),
    (
        "Data Architecture Document", 2, "technical", False,
        "Data models, flows, and storage design",
        "Data Architect", 10, ["SAD"],
    ),
    (
        "Security Architecture Design", 2, "technical", True,
        "Security controls, protocols, and compliance design",
        "Security Architect", 10, ["SAD"],
    ),
    (
        "Network Architecture Design", 2, "technical", False,
        "Network topology and infrastructure design",
        "Network Architect", 7, ["SAD"],
    ),
    (
        "UI/UX Design Document", 2, "technical", False,
        "User interface and experience design specifications",
        "UX Designer", 10, ["User Stories"],
    ),
    (
        "Wireframes & Mockups", 2, "technical", False,
        "Visual design mockups and prototypes",
        "UX Designer", 7, ["UI/UX Design Document"],
    ),
    (
        "User Interface Style Guide", 2, "technical", False,
        "UI standards, patterns, and branding guidelines",
        "UX Designer", 5, [],
    ),
    (
        "Vendor Design Review Report", 2, "vendor", True,
        "Vendor's design review and sign-off document",
        "Vendor Architect", 5, ["TDD"],
    ),
    (
        "Vendor Technical Solution Blueprint", 2, "vendor", False,
        "Vendor's technical implementation plan",
        "Vendor Architect", 7, ["TDD"],
    ),
    (
        "Design Review Sign-off", 2, "quality", True,
        "Formal approval of design phase completion",
        "Project Manager", 2, ["TDD", "Vendor Design Review Report"],
    ),
    (
        "Security Review Report", 2, "quality", False,
        "Security assessment of design",
        "Security Team", 5, ["Security Architecture Design"],
    ),
    (
        "Compliance Gap Analysis", 2, "governance", False,
        "Regulatory compliance assessment",
        "Compliance Officer", 7, ["SAD"],
    ),
    (
        "Data Privacy Impact Assessment (DPIA)", 2, "governance", False,
        "Privacy risk assessment and mitigation",
        "Privacy Officer", 7, ["Data Architecture Document"],
    ),
    (
        "Design Phase Exit Criteria Checklist", 2, "quality", False,
        "Phase gate criteria verification",
        "Quality Manager", 1, [],
    ),
    # Phase 3: Development & Build (15 documents)
    (
        "Development Standards & Guidelines", 3, "technical", False,
        "Coding standards and best practices",
        "Development Lead", 3, [],
    ),
    (
        "Code Repository Structure Document", 3, "technical", False,
        "Source code organization and branching strategy",
        "Development Lead", 2, [],
    ),
    (
        "API Documentation", 3, "technical", False,
        "API endpoints, methods, and integration guide",
        "Developer", 7, ["TDD"],
    ),
    (
        "Database Design Document", 3, "technical", False,
        "Database schema, tables, and relationships",
        "Database Developer", 7, ["Data Architecture Document"],
    ),
    (
        "Development Environment Setup Guide", 3, "technical", False,
        "Development environment configuration",
        "DevOps Engineer", 3, [],
    ),
    (
        "Vendor Development Progress Reports (Weekly)", 3, "vendor", True,
        "Weekly development status and progress updates",
        "Vendor PM", 1, [],
    ),
    (
        "Vendor Code Review Reports", 3, "vendor", False,
        "Code quality review findings",
        "Vendor Tech Lead", 2, [],
    ),
    (
        "Vendor Unit Test Reports", 3, "vendor", True,
        "Unit testing results and coverage",
        "Vendor QA", 3, [],
    ),
    (
        "Vendor Build & Deployment Guide", 3, "vendor", False,
        "Build and deployment procedures",
        "Vendor DevOps", 5, [],
    ),
    (
        "Code Review Checklist", 3, "quality", False,
        "Code review standards and criteria",
        "Tech Lead", 1, [],
    ),
    (
        "Unit Test Plan", 3, "quality", True,
        "Unit testing strategy and test cases",
        "QA Lead", 5, [],
    ),
    (
        "Integration Test Plan", 3, "quality", True,
        "Component integration testing strategy",
        "QA Lead", 7, [],
    ),
    (
        "Code Quality Metrics Report", 3, "quality", False,
        "Code quality analysis and metrics",
        "Tech Lead", 2, [],
    ),
    (
        "Change Request Log", 3, "governance", False,
        "Change request tracking register",
        "Project Manager", 1, [],
    ),
    (
        "Configuration Items Register", 3, "governance", False,
        "Configuration management database",
        "Configuration Manager", 2, [],
    ),
    # Phase 4: Testing & QA (16 documents)
    (
        "Master Test Plan (MTP)", 4, "quality", True,
        "Comprehensive testing strategy and approach",
        "QA Manager", 10, ["RTM"],
    ),
    (
        "System Integration Test (SIT) Plan", 4, "quality", True,
        "System integration testing strategy",
        "QA Lead", 7, ["MTP"],
    ),
    (
        "User Acceptance Test (UAT) Plan", 4, "quality", True,
        "User acceptance testing approach and criteria",
        "Business Analyst", 7, ["MTP"],
    ),
    (
        "Performance Test Plan", 4, "quality", False,
        "Performance, load, and stress testing strategy",
        "Performance Test Lead", 7, ["MTP"],
    ),
    (
        "Security Test Plan", 4, "quality", True,
        "Security testing and vulnerability assessment",
        "Security Tester", 7, ["MTP"],
    ),
    (
        "Regression Test Plan", 4, "quality", False,
        "Regression testing strategy for changes",
        "QA Lead", 5, ["MTP"],
    ),
    (
        "Test Cases & Test Scripts", 4, "quality", True,
        "Detailed test cases and execution scripts",
        "QA Team", 15, ["SIT Plan", "UAT Plan"],
    ),
    (
        "Test Data Management Plan", 4, "quality", False,
        "Test data creation and management strategy",
        "QA Lead", 5, [],
    ),
    (
        "Defect Management Process", 4, "quality", False,
        "Defect logging, tracking, and resolution process",
        "QA Manager", 2, [],
    ),
    (
        "Vendor Test Summary Reports", 4, "vendor", True,
        "Vendor testing results and analysis",
        "Vendor QA Lead", 5, [],
    ),
    (
        "Vendor Defect Resolution Log", 4, "vendor", True,
        "Vendor defect tracking and resolution status",
        "Vendor QA Lead", 2, [],
    ),
    (
        "SIT Sign-off", 4, "quality", True,
        "System integration testing approval",
        "Project Manager", 1, ["SIT Plan"],
    ),
    (
        "UAT Sign-off", 4, "quality", True,
        "User acceptance testing approval",
        "Business Owner", 1, ["UAT Plan"],
    ),
    (
        "Performance Test Sign-off", 4, "quality", False,
        "Performance testing approval",
        "Technical Manager", 1, ["Performance Test Plan"],
    ),
    (
        "Security Test Sign-off", 4, "quality", True,
        "Security testing approval",
        "Security Manager", 1, ["Security Test Plan"],
    ),
    (
        "Go/No-Go Decision Document", 4, "governance", True,
        "Formal decision to proceed with deployment",
        "Project Steering Committee", 2, ["SIT Sign-off", "UAT Sign-off", "Security Test Sign-off"],
    ),
    # Phase 5: Deployment & Go-Live (14 documents)
    (
        "Deployment Plan", 5, "technical", True,
        "Detailed deployment strategy and procedures",
        "Release Manager", 7, ["Go/No-Go Decision"],
    ),
    (
        "Cutover Plan", 5, "technical", True,
        "System cutover and transition procedures",
        "Release Manager", 7, ["Deployment Plan"],
    ),
    (
        "Rollback Plan", 5, "technical", True,
        "Rollback procedures in case of failure",
        "Release Manager", 5, ["Deployment Plan"],
    ),
    (
        "Data Migration Plan", 5, "technical", True,
        "Data migration strategy and validation",
        "Data Migration Lead", 10, ["Deployment Plan"],
    ),
    (
        "Go-Live Checklist", 5, "governance", True,
        "Pre-deployment readiness checklist",
        "Project Manager", 2, [],
    ),
    (
        "Operations Readiness Assessment", 5, "governance", True,
        "Operational readiness verification",
        "Operations Manager", 5, [],
    ),
    (
        "Service Transition Plan", 5, "governance", False,
        "Transition to operations procedures",
        "Service Manager", 5, [],
    ),
    (
        "Incident Management Plan", 5, "governance", False,
        "Post-deployment incident handling procedures",
        "Service Manager", 5, [],
    ),
    (
        "Change Management Plan (Operations)", 5, "governance", False,
        "Post-deployment change control process",
        "Change Manager", 3, [],
    ),
    (
        "End User Training Materials", 5, "governance", True,
        "User training guides and materials",
        "Training Manager", 10, [],
    ),
    (
        "Administrator Training Materials", 5, "technical", False,
        "System admin training documentation",
        "Training Manager", 7, [],
    ),
    (
        "System Operations Manual", 5, "technical", True,
        "System operations and maintenance guide",
        "Technical Writer", 10, [],
    ),
    (
        "User Manual / Help Documentation", 5, "governance", False,
        "End user help and reference documentation",
        "Technical Writer", 10, [],
    ),
    (
        "Go-Live Approval", 5, "governance", True,
        "Formal approval to go live",
        "Project Sponsor", 1, ["Go-Live Checklist", "Operations Readiness Assessment"],
    ),
    # Phase 6: Hypercare & Stabilization (12 documents)
    (
        "Hypercare Support Plan", 6, "governance", True,
        "Post go-live intensive support plan",
        "Support Manager", 5, [],
    ),
    (
        "Issue Escalation Matrix", 6, "governance", False,
        "Issue escalation procedures and contacts",
        "Support Manager", 2, [],
    ),
    (
        "Known Issues Log", 6, "governance", False,
        "Known issues and workarounds register",
        "Support Team", 1, [],
    ),
    (
        "Incident Log & Resolution Tracker", 6, "governance", True,
        "Post go-live incident tracking",
        "Support Team", 1, [],
    ),
    (
        "System Performance Report (Daily/Weekly)", 6, "technical", False,
        "System performance monitoring reports",
        "Operations Team", 1, [],
    ),
    (
        "User Feedback Log", 6, "governance", True,
        "User feedback and satisfaction tracking",
        "Project Manager", 1, [],
    ),
    (
        "Bug & Defect Log (Post Go-Live)", 6, "quality", False,
        "Post-deployment defect tracking",
        "Support Team", 1, [],
    ),
    (
        "Vendor Hypercare Support Schedule", 6, "vendor", True,
        "Vendor hypercare availability and support plan",
        "Vendor PM", 2, [],
    ),
    (
        "Vendor Issue Resolution SLA Tracker", 6, "vendor", False,
        "Vendor SLA compliance tracking",
        "Project Manager", 1, [],
    ),
    (
        "Vendor Performance Scorecard", 6, "vendor", False,
        "Vendor performance evaluation",
        "Project Manager", 3, [],
    ),
    (
        "Stabilization Criteria Checklist", 6, "quality", False,
        "System stabilization verification",
        "Project Manager", 2, [],
    ),
    (
        "Hypercare Exit Criteria", 6, "governance", True,
        "Criteria for exiting hypercare phase",
        "Project Manager", 2, [],
    ),
    # Phase 7: Closeout & Handover (10 documents)
    (
        "Project Closeout Report", 7, "governance", True,
        "Comprehensive project closure document",
        "Project Manager", 7, [],
    ),
    (
        "Final Project Performance Report", 7, "governance", True,
        "Final performance metrics and analysis",
        "Project Manager", 5, [],
    ),
    (
        "Lessons Learned Report", 7, "governance", True,
        "Project lessons learned and recommendations",
        "Project Manager", 5, [],
    ),
    (
        "Benefits Realization Report", 7, "strategic", False,
        "Benefits achieved vs planned analysis",
        "Business Owner", 7, [],
    ),
    (
        "Business As-Usual (BAU) Handover Document", 7, "governance", True,
        "Handover to business operations",
        "Project Manager", 5, [],
    ),
    (
        "Support Team Handover Document", 7, "governance", True,
        "Handover to support team with procedures",
        "Support Manager", 5, [],
    ),
    (
        "Knowledge Transfer Completion Certificate", 7, "governance", False,
        "Knowledge transfer confirmation",
        "Project Manager", 1, [],
    ),
    (
        "Final Budget Report", 7, "governance", False,
        "Final financial performance report",
        "Finance Manager", 5, [],
    ),
    (
        "Contract Closure Document", 7, "contractual", False,
        "Vendor contract closure and sign-off",
        "Procurement Manager", 3, [],
    ),
    (
        "Vendor Performance Evaluation", 7, "vendor", True,
        "Final vendor performance assessment",
        "Project Manager", 5, [],
    ),
]


def default_templates() -> List[DocumentTemplate]:
    """Build fresh template entities from the catalogue for seeding."""
    return [
        DocumentTemplate(
            name=name,
            phase_name=PHASE_NAMES[phase],
            category=TemplateCategory(category),
            is_critical_milestone=critical,
            description=description,
            typical_owner=owner,
            estimated_days=days,
            dependencies=list(dependencies),
        )
        for name, phase, category, critical, description, owner, days, dependencies in _CATALOGUE
    ]


def phase_name(value: str) -> Optional[str]:
    """Resolve "3", "Phase 3" or a full phase name to the canonical name."""
    value = value.strip()
    if value in PHASE_NAMES:
        return value
    digits = "".join(ch for ch in value if ch.isdigit())
    if digits and int(digits) < len(PHASE_NAMES):
        return PHASE_NAMES[int(digits)]
    return None
