from __future__ import annotations

AXES = ["EI", "SN", "TF", "JP"]

AXIS_DISPLAY = {
    "EI": "外向(E) vs 内向(I)",
    "SN": "感觉(S) vs 直觉(N)",
    "TF": "思考(T) vs 情感(F)",
    "JP": "判断(J) vs 知觉(P)",
}

POLE_DISPLAY = {
    "E": "外向",
    "I": "内向",
    "S": "感觉",
    "N": "直觉",
    "T": "思考",
    "F": "情感",
    "J": "判断",
    "P": "知觉",
}

DEFAULT_ANALYSIS_KEYWORDS = [
    "分析",
    "总结",
    "结论",
    "性格类型",
    "MBTI",
    "判断",
    "评估",
    "看起来",
    "根据",
    "综合",
]

# Substring match against the case-folded transcript; incidental hits are expected.
DIMENSION_KEYWORDS = {
    "EI": ["聚会", "社交", "独处", "交流", "朋友", "人群", "安静", "热闹"],
    "SN": ["细节", "直觉", "可能性", "未来", "现实", "抽象", "具体", "想象"],
    "TF": ["决定", "感受", "逻辑", "情感", "理性", "价值观", "公平", "和谐"],
    "JP": ["计划", "灵活", "规律", "随性", "截止日期", "自由", "结构", "变化"],
}

MIN_COVERED_DIMENSIONS = 3

SYNTHESIZED_DIMENSION_CONFIDENCE = 0.75
SYNTHESIZED_CONFIDENCE = 0.7

DEFAULT_TYPE = "ENFP"

TYPE_PROFILES = {
    "ENFP": {
        "description": "ENFP（倡导者）是充满热情和创造力的理想主义者，善于激励他人并发现新的可能性。",
        "strengths": ["富有创造力", "善于激励他人", "适应性强", "充满热情"],
        "development_areas": ["提高专注力", "加强细节管理", "学会处理批评"],
        "career_suggestions": ["创意设计", "教育培训", "人力资源", "媒体传播"],
    },
    "INTJ": {
        "description": "INTJ（建筑师）是独立的思想家，具有强烈的直觉和战略思维能力。",
        "strengths": ["战略思维", "独立工作", "系统性思考", "目标导向"],
        "development_areas": ["改善人际交往", "增强灵活性", "学会团队合作"],
        "career_suggestions": ["系统分析", "研究开发", "战略规划", "技术管理"],
    },
}

WELCOME_FALLBACK = (
    "你好！我是你的MBTI性格分析师。让我们开始了解你的性格特点吧！"
    "请告诉我，在一个聚会上，你通常更愿意与几个熟悉的朋友深入交谈，还是喜欢认识更多新朋友？"
)

MODEL_NOT_READY_MESSAGE = "⚠️ DeepSeek AI模型未准备就绪，请检查配置文件中的API Key设置"
