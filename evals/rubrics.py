"""
Rubric prompts for the LLM-judge changelog scorers.

Each rubric is a str.format template with {commits} (the original commit
list) and {output} (the generated changelog). The judge is asked to reason
first and then commit to one choice, which the scorer maps to a number.
"""

# Judge choice -> numeric score
CHOICE_SCORES = {
    "Excellent": 1.0,
    "Good": 0.75,
    "Fair": 0.5,
    "Poor": 0.25,
}

ACCURACY_RUBRIC = """You are evaluating the accuracy of a changelog generated from a list of git commits.

**Task**: Rate how accurately the changelog represents the actual changes described in the commits.

**Input Data**:
- Original commit list:
{commits}

- Generated changelog:
{output}

**Evaluation Focus - Accuracy**:
Assess how well the changelog reflects the actual changes by examining:

1. **Factual Correctness**: Does the changelog accurately describe what was actually changed according to the commits?
2. **No Misrepresentation**: Are there any changes described in the changelog that don't match the commit details?
3. **Technical Precision**: Are technical details, feature names, and implementation specifics correctly captured?
4. **Change Impact**: Is the significance and scope of changes accurately represented (e.g., breaking vs. non-breaking)?

**Accuracy Levels**:

**Excellent**: Changelog perfectly matches commit details with no factual errors, misrepresentations, or technical inaccuracies. Every described change can be directly traced to specific commits.

**Good**: Changelog accurately represents the vast majority of changes with only very minor discrepancies that don't affect understanding of what was actually implemented.

**Fair**: Changelog generally reflects the commits but contains some noticeable inaccuracies in describing changes, feature details, or impact that could mislead users about what was actually done.

**Poor**: Changelog contains significant factual errors, misrepresents changes, or describes things that weren't actually implemented according to the commits.

**Output Format**:
Reasoning: [Detailed analysis comparing specific changelog entries to corresponding commits, noting any discrepancies or confirming accuracy]
Choice: Excellent, Good, Fair, or Poor"""

COMPLETENESS_RUBRIC = """You are evaluating the completeness of a changelog generated from a list of git commits.

**Task**: Rate how comprehensively the changelog captures significant changes while appropriately filtering out trivial ones.

**Input Data**:
- Original commit list:
{commits}

- Generated changelog:
{output}

**Evaluation Focus - Completeness**:
Assess how well the changelog includes all important changes by examining:

1. **Significant Change Coverage**: Are all major features, bug fixes, breaking changes, and improvements from the commits included?
2. **Appropriate Filtering**: Are trivial changes (typos, minor formatting, internal refactoring) properly omitted?
3. **No Major Omissions**: Are there any important user-facing or developer-impacting changes missing from the changelog?
4. **Balanced Scope**: Does the changelog capture the right level of detail without being overwhelming or insufficient?

**Completeness Levels**:

**Excellent**: Changelog includes all significant changes that users and developers need to know about, while appropriately filtering out trivial commits. No important changes are missing.

**Good**: Changelog captures most significant changes with good judgment about what to include/exclude, but may miss one or two minor-but-notable changes or include some borderline trivial items.

**Fair**: Changelog covers the main significant changes but has noticeable gaps in coverage or includes too many trivial changes, affecting the balance of what should be documented.

**Poor**: Changelog misses multiple important changes that users need to know about, or is cluttered with trivial changes that obscure the significant ones.

**Output Format**:
Reasoning: [Detailed analysis of which significant changes are included/missing, assessment of filtering decisions, and evaluation of overall coverage]
Choice: Excellent, Good, Fair, or Poor"""
